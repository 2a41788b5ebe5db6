from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    HostmanError,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.floating_ip import (
    FloatingIPReconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.kubernetes import (
    KubernetesClusterReconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.server import (
    ServerReconciler,
)

RECONCILERS = {
    ServerReconciler.resource_type: ServerReconciler,
    FloatingIPReconciler.resource_type: FloatingIPReconciler,
    KubernetesClusterReconciler.resource_type: KubernetesClusterReconciler,
}


def get_reconciler(resource_type: str, transport, **kwargs):
    """Instantiates the reconciler registered for `resource_type`."""
    try:
        reconciler_class = RECONCILERS[resource_type]
    except KeyError:
        raise HostmanError(
            f"Unknown resource type '{resource_type}'. Supported: {', '.join(sorted(RECONCILERS))}."
        ) from None
    return reconciler_class(transport, **kwargs)
