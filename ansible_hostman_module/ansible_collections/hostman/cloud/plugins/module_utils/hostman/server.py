from ansible_collections.hostman.cloud.plugins.module_utils.hostman.poller import (
    WaitConfig,
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
    to_int,
    to_str,
)

# Synthetic status reported while waiting: a server is usable once the API
# hands out its generated root password.
PASSWORD_READY = "root_pass_ready"

SERVER_SCHEMA = {
    "name": Field("str", required=True, updatable=True),
    "bandwidth": Field("int", required=True, updatable=True),
    "preset_id": Field("int", updatable=True),
    "os_id": Field("int", updatable=True),
    "image_id": Field("str", updatable=True),
    "is_ddos_guard": Field("bool", required=True, updatable=True),
    "root_pass": Field("str", computed=True, sensitive=True),
    "status": Field("str", computed=True),
}


def password_status(observed):
    if observed.get("root_pass"):
        return PASSWORD_READY
    return observed.get("status") or "pending"


class ServerReconciler(Reconciler):
    """Virtual servers. Creation blocks until the root password is provisioned."""

    resource_type = "server"
    collection_path = "/servers"
    envelope = "server"
    list_envelope = "servers"
    update_method = "PATCH"
    schema = SERVER_SCHEMA
    wait_options = ("wait", "timeout", "interval")
    readiness = WaitConfig(
        success_states=(PASSWORD_READY,),
        failure_states=("error", "failed", "removed"),
        interval=5,
        timeout=1800,
    )

    def __init__(self, transport, **kwargs):
        super().__init__(transport, **kwargs)
        # The password wait reports PASSWORD_READY; it must stay terminal
        # whatever vocabulary was passed in.
        if PASSWORD_READY not in self.readiness.success_states:
            self.readiness = self.readiness.override(
                success_states=self.readiness.success_states + (PASSWORD_READY,)
            )

    def build_create_payload(self, values: dict) -> dict:
        self.validate_required(values)
        payload = {
            "name": values["name"],
            "bandwidth": values["bandwidth"],
            "is_ddos_guard": bool(values["is_ddos_guard"]),
        }

        # Image and OS are mutually exclusive; the image wins.
        if not is_zero(values.get("image_id")):
            payload["image_id"] = values["image_id"]
        elif not is_zero(values.get("os_id")):
            payload["os_id"] = values["os_id"]

        if not is_zero(values.get("preset_id")):
            payload["preset_id"] = values["preset_id"]

        return payload

    def build_update_payload(self, values: dict, changed) -> dict:
        payload = super().build_update_payload(values, changed)
        if not is_zero(values.get("image_id")):
            payload.pop("os_id", None)
        return payload

    def decode_state(self, document: dict) -> dict:
        state = {}
        if "name" in document:
            state["name"] = to_str(document["name"])
        if "bandwidth" in document:
            state["bandwidth"] = to_int(document["bandwidth"])
        if "preset_id" in document:
            state["preset_id"] = to_int(document["preset_id"])
        if "is_ddos_guard" in document:
            state["is_ddos_guard"] = to_bool(document["is_ddos_guard"])
        if "root_pass" in document:
            state["root_pass"] = to_str(document["root_pass"])
        if "status" in document:
            state["status"] = to_str(document["status"])

        # Depending on the endpoint the OS and image arrive either flat or
        # as nested objects.
        if "os_id" in document:
            state["os_id"] = to_int(document["os_id"])
        elif isinstance(document.get("os"), dict) and "id" in document["os"]:
            state["os_id"] = to_int(document["os"]["id"])
        if "image_id" in document:
            state["image_id"] = to_str(document["image_id"])
        elif isinstance(document.get("image"), dict) and "id" in document["image"]:
            state["image_id"] = normalize_id(document["image"]["id"])

        return state

    def after_create(self, record, desired):
        if record.get("root_pass") or not self.wait:
            return
        self.module.debug(f"Waiting for the root password of server {record.id}")
        self.wait_until_ready(record, status_of=password_status)
