"""
Module configuration shared by every module in the collection.

Connection settings come from module parameters, falling back to the
`HOSTMAN_API_URL` and `HOSTMAN_TOKEN` environment variables. Resource
parameters are derived from the reconcilers' field schemas so the two
can never drift apart.
"""

from ansible.module_utils.basic import AnsibleModule, env_fallback

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.registry import (
    RECONCILERS,
    get_reconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.transport import (
    DEFAULT_API_URL,
    Transport,
)


def common_argument_spec() -> dict:
    return dict(
        api_url=dict(
            type="str",
            default=DEFAULT_API_URL,
            fallback=(env_fallback, ["HOSTMAN_API_URL"]),
        ),
        access_token=dict(
            type="str",
            required=True,
            no_log=True,
            fallback=(env_fallback, ["HOSTMAN_TOKEN"]),
        ),
        request_timeout=dict(type="int", default=30),
    )


def wait_argument_spec(options=None) -> dict:
    """The waiting options, restricted to `options` when given."""
    spec = dict(
        wait=dict(type="bool", default=True),
        timeout=dict(type="int"),
        interval=dict(type="int"),
        success_states=dict(type="list", elements="str"),
        failure_states=dict(type="list", elements="str"),
        lenient_delete=dict(type="bool", default=False),
    )
    if options is None:
        return spec
    return {name: value for name, value in spec.items() if name in options}


def resource_argument_spec(resource_type: str) -> dict:
    """Argument spec for a present/absent module managing `resource_type`."""
    reconciler_class = RECONCILERS[resource_type]
    spec = common_argument_spec()
    spec.update(wait_argument_spec(reconciler_class.wait_options))
    spec.update(
        state=dict(type="str", default="present", choices=["present", "absent"]),
        id=dict(type="str"),
    )
    for name, field in reconciler_class.schema.items():
        if not field.computed:
            spec[name] = field.to_argument_spec()
    return spec


def facts_argument_spec(resource_type: str) -> dict:
    spec = common_argument_spec()
    spec.update(id=dict(type="str"))
    if "name" in RECONCILERS[resource_type].schema:
        spec.update(name=dict(type="str"))
    return spec


def build_transport(module: AnsibleModule) -> Transport:
    return Transport(
        module,
        module.params["api_url"],
        module.params["access_token"],
        request_timeout=module.params.get("request_timeout") or 30,
    )


def build_reconciler(module: AnsibleModule, resource_type: str, **kwargs):
    """
    Instantiates the reconciler for `resource_type`, applying the waiting
    options the user passed to the module. Options the type does not
    declare in `wait_options` are ignored.
    """
    reconciler_class = RECONCILERS[resource_type]
    params = module.params

    def option(name, default=None):
        if name not in reconciler_class.wait_options or params.get(name) is None:
            return default
        return params[name]

    readiness = reconciler_class.readiness.override(
        success_states=option("success_states"),
        failure_states=option("failure_states"),
        interval=option("interval"),
        timeout=option("timeout"),
    )
    deletion = reconciler_class.deletion.override(
        interval=option("interval"),
        timeout=option("timeout"),
    )

    return get_reconciler(
        resource_type,
        build_transport(module),
        wait=option("wait", True),
        readiness=readiness,
        deletion=deletion,
        lenient_delete=option("lenient_delete", False),
        **kwargs,
    )
