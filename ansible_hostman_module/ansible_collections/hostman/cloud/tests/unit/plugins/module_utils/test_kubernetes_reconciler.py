import pytest

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    ReadinessError,
    ReadinessTimeout,
    TransportError,
    ValidationError,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.kubernetes import (
    KubernetesClusterReconciler,
    build_worker_group,
    parse_kubeconfig,
    validate_worker_group,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.poller import (
    WaitConfig,
)

CLUSTER_PATH = "/k8s/clusters/9"
KUBECONFIG_PATH = "/k8s/clusters/9/kubeconfig"

GENERAL_GROUP = {
    "name": "general",
    "preset_id": 2001,
    "node_count": 3,
    "is_autoscaling": False,
}
BATCH_GROUP = {
    "name": "batch",
    "configuration": {"configurator_id": 7, "cpu": 4, "ram": 8192, "disk": 81920},
    "node_count": 2,
    "is_autoscaling": True,
    "autoscaling_min": 2,
    "autoscaling_max": 6,
    "labels": [{"key": "pool", "value": "batch"}],
}


def desired_cluster(**overrides):
    values = {
        "name": "prod",
        "k8s_version": "1.28",
        "network_driver": "flannel",
        "preset_id": 1001,
        "worker_groups": [GENERAL_GROUP, BATCH_GROUP],
    }
    values.update(overrides)
    return values


def cluster_document(status="provisioning", **overrides):
    document = {
        "id": 9.0,
        "name": "prod",
        "k8s_version": "1.28",
        "network_driver": "flannel",
        "availability_zone": "ams-1",
        "preset_id": 1001,
        "status": status,
        "worker_groups": [
            {"id": 31, "name": "general", "preset_id": 2001.0, "node_count": 3},
        ],
    }
    document.update(overrides)
    return {"cluster": document}


@pytest.fixture
def reconciler(make_reconciler):
    return make_reconciler(KubernetesClusterReconciler)


class TestWorkerGroups:
    def test_preset_group(self):
        assert build_worker_group(GENERAL_GROUP) == {
            "name": "general",
            "node_count": 3,
            "preset_id": 2001,
        }

    def test_configuration_group_with_autoscaling_and_labels(self):
        assert build_worker_group(BATCH_GROUP) == {
            "name": "batch",
            "node_count": 2,
            "configuration": {"configurator_id": 7, "cpu": 4, "ram": 8192, "disk": 81920},
            "labels": [{"key": "pool", "value": "batch"}],
            "is_autoscaling": True,
            "autoscaling_min": 2,
            "autoscaling_max": 6,
        }

    def test_autoscaling_bounds_are_dropped_when_disabled(self):
        group = dict(GENERAL_GROUP, autoscaling_min=3, autoscaling_max=5)
        payload = build_worker_group(group)
        assert "autoscaling_min" not in payload
        assert "is_autoscaling" not in payload

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"configuration": {"cpu": 2}}, "mutually exclusive"),
            ({"preset_id": None}, "one of"),
            ({"node_count": 0}, "node_count"),
            ({"node_count": 101}, "node_count"),
            ({"is_autoscaling": True, "autoscaling_min": 1, "autoscaling_max": 4}, "autoscaling_min"),
            ({"is_autoscaling": True, "autoscaling_min": 2}, "autoscaling_max"),
            ({"is_autoscaling": True, "autoscaling_min": 5, "autoscaling_max": 3}, "exceeds"),
            ({"labels": [{"key": "", "value": "x"}]}, "label"),
        ],
    )
    def test_invalid_groups(self, overrides, message):
        with pytest.raises(ValidationError, match=message):
            validate_worker_group(dict(GENERAL_GROUP, **overrides))


class TestCreatePayload:
    def test_two_worker_groups(self, reconciler):
        payload = reconciler.build_create_payload(reconciler.with_defaults(desired_cluster()))

        assert payload["worker_groups"] == [
            build_worker_group(GENERAL_GROUP),
            build_worker_group(BATCH_GROUP),
        ]
        general, batch = payload["worker_groups"]
        assert "configuration" not in general
        assert "preset_id" not in batch
        assert "is_autoscaling" not in general
        assert batch["is_autoscaling"] is True

    def test_zero_valued_optionals_are_omitted(self, reconciler):
        payload = reconciler.build_create_payload(
            reconciler.with_defaults(
                desired_cluster(description="", is_ingress=False, worker_groups=[])
            )
        )
        assert payload == {
            "name": "prod",
            "k8s_version": "1.28",
            "network_driver": "flannel",
            "availability_zone": "ams-1",
            "preset_id": 1001,
        }

    def test_master_configuration(self, reconciler):
        payload = reconciler.build_create_payload(
            desired_cluster(preset_id=None, configuration={"configurator_id": 3, "cpu": 2, "ram": 4096, "disk": None})
        )
        assert payload["configuration"] == {"configurator_id": 3, "cpu": 2, "ram": 4096}
        assert "preset_id" not in payload

    def test_master_preset_and_configuration_are_exclusive(self, reconciler):
        with pytest.raises(ValidationError):
            reconciler.build_create_payload(desired_cluster(configuration={"cpu": 2}))

    def test_required_fields(self, reconciler):
        with pytest.raises(ValidationError, match="network_driver"):
            reconciler.build_create_payload(desired_cluster(network_driver=None))


class TestDecodeState:
    def test_worker_groups_and_identifier(self, reconciler):
        state = reconciler.decode_state(
            cluster_document(
                worker_groups=[
                    {
                        "id": 31,
                        "name": "batch",
                        "node_count": 2.0,
                        "configuration": {"cpu": 4.0, "ram": 8192},
                        "is_autoscaling": True,
                        "autoscaling_min": 2,
                        "autoscaling_max": 6,
                        "labels": [{"key": "pool", "value": "batch"}],
                    }
                ]
            )["cluster"]
        )

        assert state["cluster_id"] == "9"
        assert state["worker_groups"] == [
            {
                "id": "31",
                "name": "batch",
                "node_count": 2,
                "configuration": {"cpu": 4, "ram": 8192},
                "is_autoscaling": True,
                "autoscaling_min": 2,
                "autoscaling_max": 6,
                "labels": [{"key": "pool", "value": "batch"}],
            }
        ]

    @pytest.mark.parametrize(
        "content",
        [b"apiVersion: v1\nkind: Config\n", b'{"kubeconfig": "apiVersion: v1\\nkind: Config\\n"}'],
    )
    def test_parse_kubeconfig(self, content):
        assert parse_kubeconfig(content) == "apiVersion: v1\nkind: Config\n"


class TestLifecycle:
    def test_create_waits_for_readiness_then_reads_the_kubeconfig(self, reconciler, transport, clock):
        transport.script("POST", "/k8s/clusters", cluster_document())
        transport.script(
            "GET",
            CLUSTER_PATH,
            cluster_document(),
            cluster_document(),
            cluster_document(status="started", endpoint="https://10.0.0.1:6443"),
        )
        transport.script("GET", KUBECONFIG_PATH, b"apiVersion: v1\n")

        record = reconciler.create(reconciler.new_record(desired_cluster()))

        posts = transport.calls_to("POST", "/k8s/clusters")
        assert len(posts) == 1
        assert len(posts[0][2]["worker_groups"]) == 2
        assert record.id == "9"
        assert record.get("cluster_id") == "9"
        assert record.get("status") == "started"
        assert record.get("endpoint") == "https://10.0.0.1:6443"
        assert record.get("kubeconfig") == "apiVersion: v1\n"
        # The kubeconfig is only fetched by the final read.
        assert len(transport.calls_to("GET", KUBECONFIG_PATH)) == 1
        assert clock.sleeps == [10, 10]

    @pytest.mark.parametrize("ready_status", ["ready", "running", "started"])
    def test_every_ready_status_ends_the_wait(self, reconciler, transport, ready_status):
        transport.script("POST", "/k8s/clusters", cluster_document())
        transport.script("GET", CLUSTER_PATH, cluster_document(status=ready_status))
        transport.script("GET", KUBECONFIG_PATH, b"apiVersion: v1\n")

        record = reconciler.create(reconciler.new_record(desired_cluster()))

        assert record.get("status") == ready_status

    def test_ready_vocabulary_is_configurable(self, make_reconciler, transport, clock):
        reconciler = make_reconciler(
            KubernetesClusterReconciler,
            readiness=WaitConfig(("active",), ("error",), interval=3, timeout=60),
        )
        transport.script("POST", "/k8s/clusters", cluster_document())
        transport.script(
            "GET", CLUSTER_PATH, cluster_document(status="started"), cluster_document(status="active")
        )
        transport.script("GET", KUBECONFIG_PATH, b"apiVersion: v1\n")

        record = reconciler.create(reconciler.new_record(desired_cluster()))

        assert record.get("status") == "active"
        assert clock.sleeps == [3]

    def test_failure_status_during_creation(self, reconciler, transport):
        transport.script("POST", "/k8s/clusters", cluster_document())
        transport.script("GET", CLUSTER_PATH, cluster_document(status="failed"))
        record = reconciler.new_record(desired_cluster())

        with pytest.raises(ReadinessError) as exc_info:
            reconciler.create(record)

        assert exc_info.value.status == "failed"
        assert record.id == "9"

    def test_creation_timeout(self, make_reconciler, transport):
        reconciler = make_reconciler(
            KubernetesClusterReconciler,
            readiness=WaitConfig(("ready",), ("error",), interval=10, timeout=30),
        )
        transport.script("POST", "/k8s/clusters", cluster_document())
        transport.script("GET", CLUSTER_PATH, cluster_document())
        record = reconciler.new_record(desired_cluster())

        with pytest.raises(ReadinessTimeout):
            reconciler.create(record)

        assert record.id == "9"

    def test_kubeconfig_failure_keeps_the_previous_value(self, reconciler, transport, module):
        transport.script("GET", CLUSTER_PATH, cluster_document(status="ready"))
        transport.script("GET", KUBECONFIG_PATH, TransportError(500, b"unavailable"))
        record = reconciler.new_record({"kubeconfig": "previous"}, id="9")

        reconciler.read(record)

        assert record.get("status") == "ready"
        assert record.get("kubeconfig") == "previous"
        module.warn.assert_called_once()

    def test_update_puts_rebuilt_worker_groups(self, reconciler, transport):
        transport.script("PUT", CLUSTER_PATH, cluster_document(status="ready"))
        transport.script("GET", CLUSTER_PATH, cluster_document(status="ready"))
        transport.script("GET", KUBECONFIG_PATH, b"apiVersion: v1\n")
        record = reconciler.new_record(desired_cluster(description="main"), id="9")

        reconciler.update(record, {"worker_groups", "description"})

        puts = transport.calls_to("PUT")
        assert puts == [
            (
                "PUT",
                CLUSTER_PATH,
                {
                    "description": "main",
                    "worker_groups": [
                        build_worker_group(GENERAL_GROUP),
                        build_worker_group(BATCH_GROUP),
                    ],
                },
            )
        ]
        assert len(transport.calls_to("GET", CLUSTER_PATH)) == 1

    def test_delete_waits_until_not_found(self, reconciler, transport, clock):
        transport.script("DELETE", CLUSTER_PATH, None)
        transport.script(
            "GET",
            CLUSTER_PATH,
            cluster_document(status="deleting"),
            cluster_document(status="deleting"),
            TransportError(404, b'{"error_code": "not_found"}'),
        )
        record = reconciler.new_record({"name": "prod"}, id="9")

        reconciler.delete(record)

        assert record.id == ""
        assert len(transport.calls_to("GET", CLUSTER_PATH)) == 3
        assert clock.sleeps == [10, 10]

    def test_delete_keeps_polling_through_other_errors(self, reconciler, transport, module):
        transport.script("DELETE", CLUSTER_PATH, None)
        transport.script(
            "GET", CLUSTER_PATH, TransportError(502, b"bad gateway"), TransportError(404)
        )
        record = reconciler.new_record({}, id="9")

        reconciler.delete(record)

        assert record.id == ""
        module.warn.assert_called_once()

    def test_lenient_delete_accepts_any_error(self, make_reconciler, transport):
        reconciler = make_reconciler(KubernetesClusterReconciler, lenient_delete=True)
        transport.script("DELETE", CLUSTER_PATH, None)
        transport.script("GET", CLUSTER_PATH, TransportError(502, b"bad gateway"))
        record = reconciler.new_record({}, id="9")

        reconciler.delete(record)

        assert record.id == ""
        assert len(transport.calls_to("GET")) == 1

    def test_delete_timeout_keeps_the_identifier(self, make_reconciler, transport):
        reconciler = make_reconciler(
            KubernetesClusterReconciler,
            deletion=WaitConfig((), (), interval=10, timeout=20),
        )
        transport.script("DELETE", CLUSTER_PATH, None)
        transport.script("GET", CLUSTER_PATH, cluster_document(status="deleting"))
        record = reconciler.new_record({}, id="9")

        with pytest.raises(ReadinessTimeout):
            reconciler.delete(record)

        assert record.id == "9"

    def test_delete_without_wait(self, make_reconciler, transport):
        reconciler = make_reconciler(KubernetesClusterReconciler, wait=False)
        transport.script("DELETE", CLUSTER_PATH, None)
        record = reconciler.new_record({}, id="9")

        reconciler.delete(record)

        assert record.id == ""
        assert transport.calls == [("DELETE", CLUSTER_PATH, None)]
