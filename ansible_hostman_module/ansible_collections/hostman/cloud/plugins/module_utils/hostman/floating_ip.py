from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    TransportError,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.reconciler import (
    Reconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.record import (
    Field,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.scalars import (
    is_zero,
    normalize_id,
    to_bool,
    to_str,
)

DEFAULT_AVAILABILITY_ZONE = "ams-1"
ALREADY_BOUND = "floating_ip_already_bound"

FLOATING_IP_SCHEMA = {
    "is_ddos_guard": Field("bool", default=False),
    "availability_zone": Field("str", default=DEFAULT_AVAILABILITY_ZONE),
    "comment": Field("str"),
    "resource_type": Field("str", updatable=True),
    "resource_id": Field("raw", updatable=True),
    "ip": Field("str", computed=True),
}

BINDING_FIELDS = ("resource_type", "resource_id")


def is_already_bound(error: Exception) -> bool:
    return isinstance(error, TransportError) and ALREADY_BOUND in error.text


def binding_of(values) -> tuple:
    """The (resource_type, resource_id) pair with the id in canonical form."""
    return (values.get("resource_type") or "", normalize_id(values.get("resource_id")))


class FloatingIPReconciler(Reconciler):
    """
    Floating IPs. Allocation and binding are separate API calls: the IP is
    allocated first, then bound to its target resource if one is requested.
    """

    resource_type = "floating_ip"
    collection_path = "/floating-ips"
    envelope = "ip"
    schema = FLOATING_IP_SCHEMA
    # Allocation and binding are synchronous.
    wait_options = ()

    def build_create_payload(self, values: dict) -> dict:
        payload = {
            "is_ddos_guard": bool(values.get("is_ddos_guard")),
            "availability_zone": values.get("availability_zone") or DEFAULT_AVAILABILITY_ZONE,
        }
        if not is_zero(values.get("comment")):
            payload["comment"] = values["comment"]
        return payload

    def build_update_payload(self, values: dict, changed) -> dict:
        # Floating IPs have no update endpoint; rebinding is a separate call.
        return {}

    def update_request(self, record, changed):
        desired = binding_of(record.values)
        if not set(changed) & set(BINDING_FIELDS) or not all(desired):
            return None
        return (
            "POST",
            f"{self.detail_path(record.id)}/bind",
            {"resource_type": desired[0], "resource_id": desired[1]},
        )

    def decode_state(self, document: dict) -> dict:
        state = {}
        if "ip" in document:
            state["ip"] = to_str(document["ip"])
        if "is_ddos_guard" in document:
            state["is_ddos_guard"] = to_bool(document["is_ddos_guard"])
        if "availability_zone" in document:
            state["availability_zone"] = to_str(document["availability_zone"])
        if "comment" in document:
            state["comment"] = to_str(document["comment"])
        if "resource_type" in document:
            state["resource_type"] = to_str(document["resource_type"]) or ""
        if "resource_id" in document:
            state["resource_id"] = normalize_id(document["resource_id"])
        return state

    def bind(self, record, resource_type: str, resource_id):
        payload = {
            "resource_type": resource_type,
            "resource_id": normalize_id(resource_id),
        }
        self.module.debug(
            f"Binding floating IP {record.id} to {resource_type} {payload['resource_id']}"
        )
        try:
            self.transport.execute(
                "POST", f"{self.detail_path(record.id)}/bind", payload
            )
        except TransportError as e:
            # The desired end state is already reached.
            if not is_already_bound(e):
                raise
            self.module.warn(f"Floating IP {record.id} is already bound, skipping bind.")

    def after_create(self, record, desired):
        resource_type, resource_id = binding_of(desired)
        if resource_type and resource_id:
            self.bind(record, resource_type, resource_id)

    def update(self, record, changed):
        if self.update_request(record, changed):
            desired = binding_of(record.values)
            # Read-before-write: only bind when the remote binding differs.
            current = binding_of(self.decode_state(self.fetch(record.id)))
            if current != desired:
                self.bind(record, *desired)
        return self.read(record)
