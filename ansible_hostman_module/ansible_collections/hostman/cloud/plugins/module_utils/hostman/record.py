from copy import deepcopy

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    HostmanError,
)

REDACTED = "********"


class Field:
    """
    Declares one attribute of a managed resource.

    The attributes mirror Ansible's argument spec vocabulary so that a module's
    argument spec can be derived directly from a reconciler's schema.
    """

    def __init__(
        self,
        type: str = "str",
        required: bool = False,
        computed: bool = False,
        sensitive: bool = False,
        updatable: bool = False,
        default=None,
        elements: str | None = None,
        options: dict | None = None,
    ):
        self.type = type
        self.required = required
        self.computed = computed
        self.sensitive = sensitive
        self.updatable = updatable
        self.default = default
        self.elements = elements
        self.options = options

    def to_argument_spec(self) -> dict:
        spec = {"type": self.type}
        if self.default is not None:
            spec["default"] = self.default
        if self.elements:
            spec["elements"] = self.elements
        if self.options:
            spec["options"] = deepcopy(self.options)
        return spec


class ResourceRecord:
    """
    The normalized local state of one managed resource.

    `id` is the canonical identifier; an empty string means the resource is
    not created yet or was deleted. Once assigned, it can only be cleared.
    """

    def __init__(self, resource_type: str, schema: dict, values: dict | None = None, id: str = ""):
        self.resource_type = resource_type
        self.schema = schema
        self.values = {}
        self._id = ""
        for key, value in (values or {}).items():
            self.set(key, value)
        if id:
            self.assign_id(id)

    @property
    def id(self) -> str:
        return self._id

    @property
    def exists(self) -> bool:
        return bool(self._id)

    def assign_id(self, new_id: str):
        if not new_id:
            raise HostmanError(
                f"Refusing to assign an empty identifier to {self.resource_type}."
            )
        if self._id and self._id != new_id:
            raise HostmanError(
                f"{self.resource_type} already has identifier '{self._id}', "
                f"cannot change it to '{new_id}'."
            )
        self._id = new_id

    def clear_id(self):
        self._id = ""

    def get(self, key: str, default=None):
        value = self.values.get(key)
        return default if value is None else value

    def set(self, key: str, value):
        if key not in self.schema:
            raise HostmanError(f"Unknown field '{key}' for {self.resource_type}.")
        self.values[key] = value

    def merge(self, decoded: dict):
        """Copies every decoded value in; fields absent from the document stay untouched."""
        for key, value in decoded.items():
            if key in self.schema and value is not None:
                self.values[key] = value

    def sensitive_values(self) -> list:
        return [
            self.values[key]
            for key, field in self.schema.items()
            if field.sensitive and self.values.get(key)
        ]

    def redacted(self) -> dict:
        """A copy of the values safe to log or to show in a diff."""
        result = {"id": self._id}
        for key, value in self.values.items():
            field = self.schema.get(key)
            if field is not None and field.sensitive and value:
                result[key] = REDACTED
            else:
                result[key] = deepcopy(value)
        return result

    def to_dict(self) -> dict:
        result = deepcopy(self.values)
        result["id"] = self._id
        return result

    def __repr__(self):
        return f"ResourceRecord({self.resource_type!r}, {self.redacted()!r})"
