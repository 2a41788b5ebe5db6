import pytest

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.config import (
    build_reconciler,
    facts_argument_spec,
    resource_argument_spec,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    HostmanError,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.kubernetes import (
    KubernetesClusterReconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.registry import (
    RECONCILERS,
    get_reconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.server import (
    PASSWORD_READY,
    ServerReconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.transport import (
    Transport,
)


def test_registry_covers_every_resource_type():
    assert sorted(RECONCILERS) == ["floating_ip", "k8s_cluster", "server"]


def test_unknown_resource_type(transport):
    with pytest.raises(HostmanError, match="Unknown resource type 'volume'"):
        get_reconciler("volume", transport)


def test_get_reconciler_passes_options(transport):
    reconciler = get_reconciler("server", transport, wait=False)
    assert isinstance(reconciler, ServerReconciler)
    assert reconciler.wait is False
    assert reconciler.transport is transport


class TestArgumentSpecs:
    def test_resource_spec_is_derived_from_the_schema(self):
        spec = resource_argument_spec("server")

        assert spec["access_token"]["no_log"] is True
        assert spec["state"]["choices"] == ["present", "absent"]
        assert spec["bandwidth"] == {"type": "int"}
        assert "root_pass" not in spec
        assert "status" not in spec

    def test_cluster_spec_carries_worker_group_options(self):
        spec = resource_argument_spec("k8s_cluster")

        assert spec["worker_groups"]["elements"] == "dict"
        assert spec["worker_groups"]["options"]["node_count"]["required"] is True
        assert spec["availability_zone"]["default"] == "ams-1"
        assert "kubeconfig" not in spec

    def test_waiting_options_follow_the_resource_type(self):
        wait_keys = {"wait", "timeout", "interval", "success_states", "failure_states", "lenient_delete"}

        assert wait_keys <= set(resource_argument_spec("k8s_cluster"))
        assert wait_keys & set(resource_argument_spec("server")) == {"wait", "timeout", "interval"}
        assert wait_keys & set(resource_argument_spec("floating_ip")) == set()

    def test_facts_spec(self):
        assert "name" in facts_argument_spec("server")
        assert "name" not in facts_argument_spec("floating_ip")
        assert "state" not in facts_argument_spec("server")


class TestBuildReconciler:
    def test_applies_waiting_overrides(self, module):
        module.params.update(
            wait=True,
            timeout=60,
            interval=3,
            success_states=["active"],
            failure_states=None,
            lenient_delete=True,
        )

        reconciler = build_reconciler(module, "k8s_cluster")

        assert isinstance(reconciler, KubernetesClusterReconciler)
        assert isinstance(reconciler.transport, Transport)
        assert reconciler.transport.api_url == "https://api.test/api/v1"
        assert reconciler.readiness.success_states == ("active",)
        assert reconciler.readiness.failure_states == ("error", "failed", "deleted")
        assert reconciler.readiness.timeout == 60
        assert reconciler.deletion.interval == 3
        assert reconciler.deletion.timeout == 60
        assert reconciler.lenient_delete is True

    def test_defaults_per_resource_type(self, module):
        server = build_reconciler(module, "server")
        cluster = build_reconciler(module, "k8s_cluster")

        assert server.readiness.interval == 5
        assert server.readiness.timeout == 1800
        assert cluster.readiness.interval == 10
        assert cluster.deletion.timeout == 900
        assert server.wait is True
        assert cluster.lenient_delete is False

    def test_server_ignores_the_state_vocabulary(self, module):
        module.params.update(
            success_states=["running"],
            failure_states=["broken"],
            lenient_delete=True,
            interval=2,
        )

        server = build_reconciler(module, "server")

        assert server.readiness.success_states == (PASSWORD_READY,)
        assert server.readiness.failure_states == ("error", "failed", "removed")
        assert server.readiness.interval == 2
        assert server.lenient_delete is False

    def test_floating_ip_ignores_waiting_options(self, module):
        module.params.update(wait=False, timeout=5)

        floating_ip = build_reconciler(module, "floating_ip")

        assert floating_ip.wait is True
        assert floating_ip.readiness.timeout == 1800
