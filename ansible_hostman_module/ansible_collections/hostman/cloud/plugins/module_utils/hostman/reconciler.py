from abc import ABC, abstractmethod
import time

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    DecodeError,
    ValidationError,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.poller import (
    WaitConfig,
    wait_until_gone,
    wait_until_ready,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.record import (
    ResourceRecord,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.scalars import (
    normalize_id,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.transport import (
    Transport,
)


class Reconciler(ABC):
    """
    Drives one resource type's remote state toward its desired state.

    Concrete reconcilers declare their endpoints, their response envelope key
    and their field schema, and implement the payload builders and the state
    decoder. The four lifecycle operations are shared here and customized
    through the `after_create` hook or by overriding them outright.

    Every operation takes a `ResourceRecord` and returns it. A failed operation
    never touches the record's identifier, so a later retry resumes from the
    same remote resource instead of orphaning it.
    """

    resource_type: str = ""
    collection_path: str = ""
    envelope: str = ""
    list_envelope: str = ""
    update_method: str = "PATCH"
    schema: dict = {}
    idempotency_keys: dict = {}
    # Module options that tune this type's waiting behavior.
    wait_options: tuple = (
        "wait",
        "timeout",
        "interval",
        "success_states",
        "failure_states",
        "lenient_delete",
    )
    readiness = WaitConfig()
    deletion = WaitConfig(success_states=(), failure_states=(), interval=10, timeout=900)

    def __init__(
        self,
        transport: Transport,
        wait: bool = True,
        readiness: WaitConfig | None = None,
        deletion: WaitConfig | None = None,
        lenient_delete: bool = False,
        clock=time.monotonic,
        sleep=time.sleep,
    ):
        self.transport = transport
        self.module = transport.module
        self.wait = wait
        self.readiness = readiness or type(self).readiness
        self.deletion = deletion or type(self).deletion
        self.lenient_delete = lenient_delete
        self.clock = clock
        self.sleep = sleep

    # --- Schema helpers ---

    def new_record(self, values: dict | None = None, id: str = "") -> ResourceRecord:
        return ResourceRecord(self.resource_type, self.schema, values, id=id)

    def input_fields(self) -> list:
        return [name for name, field in self.schema.items() if not field.computed]

    def updatable_fields(self) -> list:
        return [name for name, field in self.schema.items() if field.updatable]

    def required_fields(self) -> list:
        return [name for name, field in self.schema.items() if field.required]

    def with_defaults(self, values: dict) -> dict:
        result = dict(values)
        for name, field in self.schema.items():
            if result.get(name) is None and field.default is not None:
                result[name] = field.default
        return result

    def validate_required(self, values: dict):
        missing = [key for key in self.required_fields() if values.get(key) is None]
        if missing:
            raise ValidationError(
                f"Missing required parameter(s) for {self.resource_type}: {', '.join(missing)}."
            )

    # --- Wire helpers ---

    def detail_path(self, resource_id: str) -> str:
        return f"{self.collection_path}/{resource_id}"

    def unwrap(self, document, key: str | None = None) -> dict:
        """Removes the single-object envelope, e.g. `{"server": {...}}`."""
        key = key or self.envelope
        if not isinstance(document, dict) or not isinstance(document.get(key), dict):
            raise DecodeError(
                f"Expected a JSON object with a '{key}' key in the {self.resource_type} response."
            )
        return document[key]

    def fetch(self, resource_id: str) -> dict:
        """GET the resource by id and return its inner document."""
        return self.unwrap(
            self.transport.request_json("GET", self.detail_path(resource_id))
        )

    def list(self) -> list:
        if not self.list_envelope:
            raise DecodeError(f"{self.resource_type} does not support listing.")
        document = self.transport.request_json("GET", self.collection_path)
        if not isinstance(document, dict) or not isinstance(
            document.get(self.list_envelope), list
        ):
            raise DecodeError(
                f"Expected a JSON object with a '{self.list_envelope}' list in the response."
            )
        return document[self.list_envelope]

    def find_by_name(self, name: str) -> list:
        """Returns decoded documents whose name matches exactly."""
        return [item for item in self.list() if item.get("name") == name]

    # --- Per-type contract ---

    @abstractmethod
    def build_create_payload(self, values: dict) -> dict:
        """Builds the minimal POST payload for a new resource."""

    def build_update_payload(self, values: dict, changed) -> dict:
        """
        Builds the diff-only update payload: exactly the changed fields that the
        API accepts in an update call.
        """
        updatable = set(self.updatable_fields())
        return {key: values.get(key) for key in sorted(changed) if key in updatable}

    def update_request(self, record: ResourceRecord, changed):
        """
        The (method, path, body) of the write an update would send, or None
        when the changes need no write at all.
        """
        payload = self.build_update_payload(record.values, changed)
        if not payload:
            return None
        return self.update_method, self.detail_path(record.id), payload

    @abstractmethod
    def decode_state(self, document: dict) -> dict:
        """Maps the inner resource document to local field values."""

    def after_create(self, record: ResourceRecord, desired: dict):
        """
        Hook for asynchronous provisioning and dependent steps. `desired` holds
        the requested values as they were before the create response was merged.
        """

    # --- Lifecycle ---

    def create(self, record: ResourceRecord) -> ResourceRecord:
        values = self.with_defaults(record.values)
        payload = self.build_create_payload(values)
        self.module.debug(f"Creating {self.resource_type}: {sorted(payload)}")

        document = self.unwrap(
            self.transport.request_json("POST", self.collection_path, payload)
        )
        resource_id = normalize_id(document.get("id"))
        if not resource_id:
            raise DecodeError(
                f"The {self.resource_type} create response carries no identifier."
            )
        record.assign_id(resource_id)
        record.merge(self.decode_state(document))

        self.after_create(record, values)
        return self.read(record)

    def read(self, record: ResourceRecord) -> ResourceRecord:
        record.merge(self.decode_state(self.fetch(record.id)))
        return record

    def update(self, record: ResourceRecord, changed) -> ResourceRecord:
        request = self.update_request(record, changed)
        if request:
            method, path, payload = request
            self.module.debug(
                f"Updating {self.resource_type} {record.id}: {sorted(payload)}"
            )
            self.transport.request_json(method, path, payload)
        return self.read(record)

    def delete(self, record: ResourceRecord) -> ResourceRecord:
        self.transport.execute("DELETE", self.detail_path(record.id))
        record.clear_id()
        return record

    # --- Waiting ---

    def wait_until_ready(self, record: ResourceRecord, read_fn=None, status_of=None):
        kwargs = {}
        if status_of is not None:
            kwargs["status_of"] = status_of
        return wait_until_ready(
            read_fn or (lambda: self.read(record)),
            self.readiness.success_states,
            self.readiness.failure_states,
            self.readiness.interval,
            self.readiness.timeout,
            clock=self.clock,
            sleep=self.sleep,
            resource_id=record.id,
            **kwargs,
        )

    def wait_until_gone(self, record: ResourceRecord):
        wait_until_gone(
            lambda: self.fetch(record.id),
            self.deletion.interval,
            self.deletion.timeout,
            lenient=self.lenient_delete,
            on_error=lambda e: self.module.warn(
                f"Ignoring error while waiting for {self.resource_type} {record.id} to disappear: {e}"
            ),
            clock=self.clock,
            sleep=self.sleep,
            resource_id=record.id,
        )
