from abc import ABC, abstractmethod
from typing import Any, Dict

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.record import (
    ResourceRecord,
)


class BaseCommand(ABC):
    """
    Abstract base class for a command in the Command pattern.

    Each command is a self-contained object that encapsulates one lifecycle
    operation of a reconciler, together with what is needed to describe the
    change to the user. Commands decouple the "planning" phase (deciding what
    needs to change) from the "execution" phase (actually calling the API),
    which is what makes Ansible's check mode possible.
    """

    command_type = ""

    def __init__(self, runner, record: ResourceRecord, description: str):
        """
        Initializes the command.

        Args:
            runner: The runner instance that owns the reconciler.
            record: The record the command operates on.
            description (str): A human-readable summary of the command's purpose.
        """
        self.runner = runner
        self.reconciler = runner.reconciler
        self.record = record
        self.description = description

    @abstractmethod
    def execute(self) -> ResourceRecord:
        """
        Executes the command. This is the only place where a write operation
        is triggered.

        Returns:
            The record after the operation.
        """

    @abstractmethod
    def to_diff(self) -> Dict[str, Any]:
        """Generates a dictionary representing the change this command makes."""

    def serialize_request(self) -> dict:
        """
        A serializable summary of the API request this command sends, used
        for the module's `commands` output.
        """
        return {
            "method": self.method,
            "url": self.reconciler.transport.url_for(self.path),
            "description": self.description,
        }

    @property
    def method(self) -> str:
        return ""

    @property
    def path(self) -> str:
        return self.reconciler.detail_path(self.record.id)


class CreateCommand(BaseCommand):
    """Creates the resource; async provisioning and binding happen inside."""

    command_type = "create"

    def __init__(self, runner, record: ResourceRecord):
        super().__init__(
            runner, record, f"Create new {runner.reconciler.resource_type}"
        )
        self.payload = runner.reconciler.build_create_payload(
            runner.reconciler.with_defaults(record.values)
        )

    @property
    def method(self) -> str:
        return "POST"

    @property
    def path(self) -> str:
        return self.reconciler.collection_path

    def execute(self) -> ResourceRecord:
        return self.reconciler.create(self.record)

    def to_diff(self) -> Dict[str, Any]:
        return {"state": "Resource will be created.", "new_attributes": self.payload}

    def serialize_request(self) -> dict:
        serialized = super().serialize_request()
        serialized["body"] = self.payload
        return serialized


class UpdateCommand(BaseCommand):
    """A diff-only update of the changed fields, followed by a re-read."""

    command_type = "update"

    def __init__(self, runner, record: ResourceRecord, changes: list):
        """
        Args:
            changes (list): Structured changes, each `{'param', 'old', 'new'}`.
        """
        super().__init__(
            runner,
            record,
            f"Update attributes of {runner.reconciler.resource_type}",
        )
        self.changes = changes
        self.changed = {change["param"] for change in changes}
        # None when the changes need no write, e.g. an OS change shadowed by an image.
        self.request = runner.reconciler.update_request(record, self.changed)

    @property
    def method(self) -> str:
        return self.request[0] if self.request else ""

    @property
    def path(self) -> str:
        return self.request[1] if self.request else super().path

    def execute(self) -> ResourceRecord:
        return self.reconciler.update(self.record, self.changed)

    def to_diff(self) -> Dict[str, Any]:
        return {"updated_attributes": self.changes}

    def serialize_request(self) -> dict:
        serialized = super().serialize_request()
        if self.request:
            serialized["body"] = self.request[2]
        return serialized


class DeleteCommand(BaseCommand):
    """Deletes the resource and, for async teardown, waits until it is gone."""

    command_type = "delete"

    def __init__(self, runner, record: ResourceRecord):
        super().__init__(
            runner,
            record,
            f"Delete {runner.reconciler.resource_type} '{record.get('name', record.id)}'",
        )
        self.old_attributes = record.redacted()

    @property
    def method(self) -> str:
        return "DELETE"

    def execute(self) -> ResourceRecord:
        return self.reconciler.delete(self.record)

    def to_diff(self) -> Dict[str, Any]:
        return {
            "state": "Resource will be deleted.",
            "old_attributes": self.old_attributes,
        }
