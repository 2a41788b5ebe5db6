from ansible_collections.hostman.cloud.plugins.module_utils.hostman.base_runner import (
    BaseRunner,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.command import (
    CreateCommand,
    DeleteCommand,
    UpdateCommand,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.diff import (
    changed_fields,
    strip_none,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.scalars import (
    normalize_id,
)


class CrudRunner(BaseRunner):
    """
    A declarative runner for the present/absent resource modules.

    Its only responsibility is to translate the user's desired state into a
    change plan: a create, a diff-only update, or a delete. All orchestration
    lives in `BaseRunner.run()`.
    """

    def desired_values(self) -> dict:
        values = strip_none(super().desired_values())
        for key, field in self.reconciler.schema.items():
            # Loosely typed references are compared and sent in canonical form.
            if field.type == "raw" and key in values:
                values[key] = normalize_id(values[key])
        return values

    def plan_creation(self) -> list:
        """
        Builds the change plan for a resource that does not exist yet. Building
        the command validates the desired state, before any API call.
        """
        record = self.reconciler.new_record(self.desired_values())
        return [CreateCommand(self, record)]

    def plan_update(self) -> list:
        """
        Compares every updatable field with the observed state and returns a
        single `UpdateCommand` if and only if something differs and the
        difference maps to an API write.
        """
        desired = self.desired_values()
        observed = self.resource.values

        self._warn_about_immutable_drift(desired, observed)

        changed = changed_fields(
            desired,
            observed,
            self.reconciler.updatable_fields(),
            self.reconciler.idempotency_keys,
        )
        if not changed:
            return []

        changes = [
            {"param": field, "old": observed.get(field), "new": desired.get(field)}
            for field in sorted(changed)
        ]

        values = dict(observed)
        values.update(desired)
        record = self.reconciler.new_record(values, id=self.resource.id)
        command = UpdateCommand(self, record, changes)
        if not command.request:
            return []
        return [command]

    def plan_deletion(self) -> list:
        return [DeleteCommand(self, self.resource)]

    def _warn_about_immutable_drift(self, desired: dict, observed: dict):
        for key, field in self.reconciler.schema.items():
            if field.computed or field.updatable:
                continue
            new_value = desired.get(key)
            old_value = observed.get(key)
            if new_value is not None and old_value is not None and new_value != old_value:
                self.module.warn(
                    f"Parameter '{key}' of {self.reconciler.resource_type} {self.resource.id} "
                    f"cannot be changed after creation (current: {old_value!r}, requested: {new_value!r})."
                )
