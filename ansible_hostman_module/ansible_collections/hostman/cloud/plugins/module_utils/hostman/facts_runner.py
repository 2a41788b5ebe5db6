from ansible_collections.hostman.cloud.plugins.module_utils.hostman.base_runner import (
    BaseRunner,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    HostmanError,
)


class FactsRunner(BaseRunner):
    """
    A runner for modules that only retrieve information ('facts').

    It finds a single resource by id or name and returns its normalized record.
    """

    # Facts modules never change anything.
    def plan_creation(self) -> list:
        return []

    def plan_update(self) -> list:
        return []

    def plan_deletion(self) -> list:
        return []

    def run(self):
        """The entire logic is to find the resource and then exit."""
        try:
            self.check_existence()
        except HostmanError as e:
            self.fail(e)
            return

        if not self.resource:
            identifier = self.module.params.get("id") or self.module.params.get("name")
            self.module.fail_json(
                msg=f"{self.reconciler.resource_type.capitalize()} '{identifier}' not found."
            )
            return

        self.module.exit_json(changed=False, resource=self.resource.to_dict())
