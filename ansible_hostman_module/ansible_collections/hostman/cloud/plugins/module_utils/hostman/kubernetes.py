import json

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    HostmanError,
    ValidationError,
)
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

DEFAULT_AVAILABILITY_ZONE = "ams-1"
MIN_NODE_COUNT = 1
MAX_NODE_COUNT = 100
MIN_AUTOSCALING_SIZE = 2

CONFIGURATION_KEYS = ("configurator_id", "cpu", "ram", "disk")

CONFIGURATION_OPTIONS = {key: {"type": "int"} for key in CONFIGURATION_KEYS}

WORKER_GROUP_OPTIONS = {
    "name": {"type": "str", "required": True},
    "preset_id": {"type": "int"},
    "configuration": {"type": "dict", "options": CONFIGURATION_OPTIONS},
    "node_count": {"type": "int", "required": True},
    "is_autoscaling": {"type": "bool", "default": False},
    "autoscaling_min": {"type": "int"},
    "autoscaling_max": {"type": "int"},
    "labels": {
        "type": "list",
        "elements": "dict",
        "options": {
            "key": {"type": "str", "required": True},
            "value": {"type": "str", "required": True},
        },
    },
}

# The attributes that define a worker group's identity when the desired list
# is compared against the observed one.
WORKER_GROUP_IDENTITY = [
    "name",
    "preset_id",
    "configuration",
    "node_count",
    "is_autoscaling",
    "autoscaling_min",
    "autoscaling_max",
    "labels",
]

CLUSTER_SCHEMA = {
    "name": Field("str", required=True, updatable=True),
    "k8s_version": Field("str", required=True, updatable=True),
    "network_driver": Field("str", required=True, updatable=True),
    "availability_zone": Field("str", default=DEFAULT_AVAILABILITY_ZONE),
    "description": Field("str", updatable=True),
    "preset_id": Field("int"),
    "configuration": Field("dict", options=CONFIGURATION_OPTIONS),
    "worker_groups": Field(
        "list", elements="dict", options=WORKER_GROUP_OPTIONS, updatable=True
    ),
    "is_ingress": Field("bool", updatable=True),
    "is_k8s_dashboard": Field("bool", updatable=True),
    "cluster_id": Field("str", computed=True),
    "endpoint": Field("str", computed=True),
    "kubeconfig": Field("str", computed=True, sensitive=True),
    "status": Field("str", computed=True),
}


def build_configuration(configuration: dict | None) -> dict:
    """The nested configuration block, non-zero keys only."""
    if not configuration:
        return {}
    return {
        key: configuration[key]
        for key in CONFIGURATION_KEYS
        if not is_zero(configuration.get(key))
    }


def validate_sizing(owner: str, preset_id, configuration, required: bool):
    has_preset = not is_zero(preset_id)
    has_configuration = bool(build_configuration(configuration))
    if has_preset and has_configuration:
        raise ValidationError(
            f"{owner}: 'preset_id' and 'configuration' are mutually exclusive."
        )
    if required and not (has_preset or has_configuration):
        raise ValidationError(
            f"{owner}: one of 'preset_id' or 'configuration' is required."
        )


def validate_worker_group(group: dict):
    name = group.get("name")
    if not name:
        raise ValidationError("Every worker group needs a 'name'.")
    owner = f"Worker group '{name}'"

    validate_sizing(owner, group.get("preset_id"), group.get("configuration"), True)

    node_count = group.get("node_count")
    if node_count is None or not MIN_NODE_COUNT <= node_count <= MAX_NODE_COUNT:
        raise ValidationError(
            f"{owner}: 'node_count' must be between {MIN_NODE_COUNT} and {MAX_NODE_COUNT}, got {node_count}."
        )

    if group.get("is_autoscaling"):
        minimum = group.get("autoscaling_min")
        maximum = group.get("autoscaling_max")
        for key, value in (("autoscaling_min", minimum), ("autoscaling_max", maximum)):
            if value is None or value < MIN_AUTOSCALING_SIZE:
                raise ValidationError(
                    f"{owner}: '{key}' must be at least {MIN_AUTOSCALING_SIZE} when autoscaling is enabled, got {value}."
                )
        if minimum > maximum:
            raise ValidationError(
                f"{owner}: 'autoscaling_min' ({minimum}) exceeds 'autoscaling_max' ({maximum})."
            )

    for label in group.get("labels") or []:
        if not label.get("key"):
            raise ValidationError(f"{owner}: every label needs a 'key'.")


def build_worker_group(group: dict) -> dict:
    validate_worker_group(group)
    payload = {"name": group["name"], "node_count": group["node_count"]}

    if not is_zero(group.get("preset_id")):
        payload["preset_id"] = group["preset_id"]
    else:
        payload["configuration"] = build_configuration(group.get("configuration"))

    labels = group.get("labels")
    if labels:
        payload["labels"] = [
            {"key": label["key"], "value": label.get("value") or ""} for label in labels
        ]

    if group.get("is_autoscaling"):
        payload["is_autoscaling"] = True
        payload["autoscaling_min"] = group["autoscaling_min"]
        payload["autoscaling_max"] = group["autoscaling_max"]

    return payload


def decode_configuration(document) -> dict | None:
    if not isinstance(document, dict):
        return None
    return {key: to_int(document[key]) for key in CONFIGURATION_KEYS if key in document}


def decode_worker_group(document: dict) -> dict:
    group = {"is_autoscaling": bool(to_bool(document.get("is_autoscaling")))}
    if "id" in document:
        group["id"] = normalize_id(document["id"])
    if "name" in document:
        group["name"] = to_str(document["name"])
    for key in ("preset_id", "node_count", "autoscaling_min", "autoscaling_max"):
        if document.get(key) is not None:
            group[key] = to_int(document[key])
    configuration = decode_configuration(document.get("configuration"))
    if configuration:
        group["configuration"] = configuration
    if document.get("labels"):
        group["labels"] = [
            {"key": to_str(label.get("key")), "value": to_str(label.get("value")) or ""}
            for label in document["labels"]
            if isinstance(label, dict)
        ]
    return group


def parse_kubeconfig(content: bytes) -> str:
    """The kubeconfig endpoint answers with raw YAML or a JSON wrapper."""
    text = content.decode(errors="ignore") if isinstance(content, bytes) else str(content)
    try:
        document = json.loads(text)
    except ValueError:
        return text
    if isinstance(document, dict) and isinstance(document.get("kubeconfig"), str):
        return document["kubeconfig"]
    return text


class KubernetesClusterReconciler(Reconciler):
    """
    Managed Kubernetes clusters.

    Creation waits for the cluster to reach a ready status, which can take
    tens of minutes. The kubeconfig is fetched from its own endpoint on every
    full read; a failure there does not fail the read.
    """

    resource_type = "k8s_cluster"
    collection_path = "/k8s/clusters"
    envelope = "cluster"
    list_envelope = "clusters"
    update_method = "PUT"
    schema = CLUSTER_SCHEMA
    idempotency_keys = {"worker_groups": WORKER_GROUP_IDENTITY}
    readiness = WaitConfig(
        success_states=("ready", "running", "started"),
        failure_states=("error", "failed", "deleted"),
        interval=10,
        timeout=1800,
    )
    deletion = WaitConfig(success_states=(), failure_states=(), interval=10, timeout=900)

    def build_create_payload(self, values: dict) -> dict:
        self.validate_required(values)
        validate_sizing(
            "Cluster master", values.get("preset_id"), values.get("configuration"), False
        )

        payload = {
            "name": values["name"],
            "k8s_version": values["k8s_version"],
            "network_driver": values["network_driver"],
            "availability_zone": values.get("availability_zone") or DEFAULT_AVAILABILITY_ZONE,
        }
        for key in ("description", "preset_id", "is_ingress", "is_k8s_dashboard"):
            if not is_zero(values.get(key)):
                payload[key] = values[key]

        configuration = build_configuration(values.get("configuration"))
        if configuration:
            payload["configuration"] = configuration

        worker_groups = values.get("worker_groups")
        if worker_groups:
            payload["worker_groups"] = [build_worker_group(g) for g in worker_groups]

        return payload

    def build_update_payload(self, values: dict, changed) -> dict:
        payload = super().build_update_payload(values, changed)
        if payload.get("worker_groups"):
            payload["worker_groups"] = [
                build_worker_group(g) for g in payload["worker_groups"]
            ]
        return payload

    def decode_state(self, document: dict) -> dict:
        state = {}
        if "id" in document:
            state["cluster_id"] = normalize_id(document["id"])
        for key in (
            "name",
            "k8s_version",
            "network_driver",
            "availability_zone",
            "description",
            "status",
            "endpoint",
        ):
            if key in document:
                state[key] = to_str(document[key])
        for key in ("is_ingress", "is_k8s_dashboard"):
            if key in document:
                state[key] = to_bool(document[key])
        if "preset_id" in document:
            state["preset_id"] = to_int(document["preset_id"])
        configuration = decode_configuration(document.get("configuration"))
        if configuration:
            state["configuration"] = configuration
        if isinstance(document.get("worker_groups"), list):
            state["worker_groups"] = [
                decode_worker_group(g)
                for g in document["worker_groups"]
                if isinstance(g, dict)
            ]
        if isinstance(document.get("kubeconfig"), str):
            state["kubeconfig"] = document["kubeconfig"]
        return state

    def fetch_kubeconfig(self, record) -> str | None:
        try:
            content = self.transport.execute(
                "GET", f"{self.detail_path(record.id)}/kubeconfig"
            )
        except HostmanError as e:
            self.module.warn(f"Could not fetch kubeconfig for cluster {record.id}: {e}")
            return None
        return parse_kubeconfig(content) or None

    def read(self, record, with_kubeconfig: bool = True):
        record.merge(self.decode_state(self.fetch(record.id)))
        if with_kubeconfig:
            kubeconfig = self.fetch_kubeconfig(record)
            if kubeconfig:
                record.set("kubeconfig", kubeconfig)
        return record

    def after_create(self, record, desired):
        record.set("cluster_id", record.id)
        if not self.wait:
            return
        self.module.debug(f"Waiting for cluster {record.id} to become ready")
        self.wait_until_ready(
            record, read_fn=lambda: self.read(record, with_kubeconfig=False)
        )

    def delete(self, record):
        self.transport.execute("DELETE", self.detail_path(record.id))
        if self.wait:
            self.wait_until_gone(record)
        record.clear_id()
        return record
