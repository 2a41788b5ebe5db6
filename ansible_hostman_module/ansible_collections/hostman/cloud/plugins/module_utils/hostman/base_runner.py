from abc import abstractmethod

from ansible.module_utils.basic import AnsibleModule

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.config import (
    build_reconciler,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    DecodeError,
    HostmanError,
    TransportError,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.scalars import (
    normalize_id,
)


class BaseRunner:
    """
    Abstract base class for all module runners.

    It handles common initialization, locates the managed resource and
    orchestrates a two-phase "plan and execute" workflow using the Command
    pattern. The actual remote work is delegated to the reconciler of the
    runner's resource type.
    """

    def __init__(self, module: AnsibleModule, context: dict, reconciler=None):
        """
        Initializes the runner.

        Args:
            module: The AnsibleModule instance.
            context: Runner configuration; `resource_type` is required.
            reconciler: An already built reconciler, mainly for tests.
        """
        self.module = module
        self.context = context
        self.reconciler = reconciler or build_reconciler(
            module, context["resource_type"]
        )
        self.has_changed = False
        self.resource = None
        self.plan = []

    @abstractmethod
    def plan_creation(self) -> list:
        """Returns the commands that create the resource."""

    @abstractmethod
    def plan_update(self) -> list:
        """Returns the commands that bring an existing resource up to date."""

    @abstractmethod
    def plan_deletion(self) -> list:
        """Returns the commands that delete the resource."""

    def run(self):
        """
        The universal `run` method for the present/absent modules.

        It determines whether the resource exists, delegates planning to the
        specialized methods, honors check mode and finally executes the plan.
        Any engine error becomes a module failure that reports the resource's
        identifier, so a rerun resumes from the same remote resource.
        """
        try:
            self.check_existence()

            state = self.module.params["state"]
            if self.resource:
                if state == "present":
                    self.plan = self.plan_update()
                elif state == "absent":
                    self.plan = self.plan_deletion()
            elif state == "present":
                self.plan = self.plan_creation()

            if self.module.check_mode:
                self.handle_check_mode(self.plan)
                return

            self.execute_change_plan(self.plan)
        except HostmanError as e:
            self.fail(e)
            return

        self.exit(plan=self.plan)

    def execute_change_plan(self, plan: list):
        """Executes the planned commands, tracking the record they return."""
        if not plan:
            return

        self.has_changed = True
        for command in plan:
            # Keep a handle on the record before executing: if the command
            # fails midway, its identifier is what the failure must report.
            self.resource = command.record
            result = command.execute()
            self.resource = None if command.command_type == "delete" else result

    def handle_check_mode(self, plan: list):
        """Generates a predictive diff from a change plan and exits."""
        if plan:
            self.has_changed = True
        self.exit(plan=plan, diff=[cmd.to_diff() for cmd in plan])

    def check_existence(self):
        """
        Populates `self.resource` with the current record, or None.

        The resource is looked up by `id` when one is given. Otherwise, for
        resource types that have a name, by exact name match.
        """
        resource_id = self.module.params.get("id")
        if resource_id:
            record = self.reconciler.new_record(id=resource_id)
            try:
                self.resource = self.reconciler.read(record)
            except TransportError as e:
                if not e.is_not_found:
                    raise
                self.resource = None
            return

        name = self.module.params.get("name")
        if not name or "name" not in self.reconciler.schema:
            self.resource = None
            return

        matches = self.reconciler.find_by_name(name)
        if not matches:
            self.resource = None
            return
        if len(matches) > 1:
            self.module.warn(
                f"Multiple {self.reconciler.resource_type} resources named '{name}' found, using the first one."
            )
        resource_id = normalize_id(matches[0].get("id"))
        if not resource_id:
            raise DecodeError(
                f"The {self.reconciler.resource_type} named '{name}' has no identifier."
            )
        self.resource = self.reconciler.read(self.reconciler.new_record(id=resource_id))

    def desired_values(self) -> dict:
        """The user-supplied input values, without the unset ones."""
        return {
            key: self.module.params.get(key)
            for key in self.reconciler.input_fields()
            if self.module.params.get(key) is not None
        }

    def fail(self, error: HostmanError):
        kwargs = error.to_fail_kwargs()
        if self.resource is not None:
            kwargs["id"] = self.resource.id
            kwargs["resource"] = self.resource.redacted()
        self.module.fail_json(msg=str(error), **kwargs)

    def exit(self, plan: list | None = None, diff: list | None = None):
        """Formats the final response for Ansible and exits the module."""
        result = dict(
            changed=self.has_changed,
            resource=self.resource.to_dict() if self.resource else None,
            commands=[cmd.serialize_request() for cmd in plan] if plan else [],
        )
        if diff is not None:
            result["diff"] = diff
        self.module.exit_json(**result)
