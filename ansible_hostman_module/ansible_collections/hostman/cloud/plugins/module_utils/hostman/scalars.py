"""
Conversions for loosely typed JSON scalars.

The Hostman API is not consistent about how it encodes numbers: the same
identifier can arrive as `123`, `123.0` or `"123"` depending on the endpoint.
Every decoder in the collection goes through these helpers instead of
checking types at each call site.
"""

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    DecodeError,
)


def normalize_id(value) -> str:
    """
    Returns the canonical string form of a remote identifier.

    A string passes through, an integer is decimal-formatted and a float that
    holds an integral value is formatted without fractional digits. `None`
    means "no identifier" and becomes the empty string. Anything else falls
    back to `str()`.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    # bool is a subclass of int, but it is never a real identifier.
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return f"{value:.0f}"
    return str(value)


def to_int(value):
    """Converts an integral JSON number (or numeric string) to int."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise DecodeError(f"Expected an integer, got boolean {value!r}.")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise DecodeError(f"Expected an integral number, got {value!r}.")
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
        try:
            return to_int(float(value))
        except ValueError:
            pass
    raise DecodeError(f"Expected an integer, got {value!r}.")


def to_bool(value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    raise DecodeError(f"Expected a boolean, got {value!r}.")


def to_str(value):
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return normalize_id(value)
    return str(value)


def is_zero(value) -> bool:
    """True for the zero value of any payload type (None, 0, '', False, [], {})."""
    return value is None or value == 0 or value == "" or value == [] or value == {}
