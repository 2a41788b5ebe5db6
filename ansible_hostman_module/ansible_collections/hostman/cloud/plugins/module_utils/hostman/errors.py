"""
Exception hierarchy for the Hostman reconciliation engine.

The engine only raises; the runners are the single place where a
`HostmanError` is turned into an Ansible failure via `module.fail_json`.
"""

NOT_FOUND_STATUSES = (404, 410)


class HostmanError(Exception):
    """Base class for every error raised by the engine."""

    def to_fail_kwargs(self) -> dict:
        """Extra keyword arguments passed to `module.fail_json`."""
        return {}


class TransportError(HostmanError):
    """
    A non-2xx answer (or a connection failure) from the Hostman API.

    Carries the status code and the raw response body verbatim.
    """

    def __init__(self, status: int, body: bytes = b"", method: str = "", url: str = ""):
        self.status = status
        self.body = body or b""
        self.method = method
        self.url = url
        super().__init__(
            f"Request {method} {url} failed. Status: {status}. "
            f"Response: {self.text or 'empty'}"
        )

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode(errors="ignore")
        return str(self.body)

    @property
    def is_not_found(self) -> bool:
        return self.status in NOT_FOUND_STATUSES

    def to_fail_kwargs(self) -> dict:
        return {"status": self.status, "api_error": self.text}


class DecodeError(HostmanError):
    """The API answered with a body that is not the JSON document we expected."""


class ValidationError(HostmanError):
    """The desired state is invalid; raised before any network call."""


class ReadinessError(HostmanError):
    """The remote resource reached an explicit failure state while we waited."""

    def __init__(self, status: str, resource_id: str = ""):
        self.status = status
        self.resource_id = resource_id
        super().__init__(
            f"Resource {resource_id} reached failure state '{status}'."
        )

    def to_fail_kwargs(self) -> dict:
        return {"resource_status": self.status}


class ReadinessTimeout(HostmanError):
    """The deadline passed before the resource reached a terminal state."""

    def __init__(self, timeout: float, last_status=None, resource_id: str = ""):
        self.timeout = timeout
        self.last_status = last_status
        self.resource_id = resource_id
        super().__init__(
            f"Timeout after {timeout}s waiting for resource {resource_id}. "
            f"Last observed status: {last_status!r}."
        )

    def to_fail_kwargs(self) -> dict:
        return {"resource_status": self.last_status, "timed_out": True}
