import json


def normalize_for_comparison(value, idempotency_keys: list[str] | None = None):
    """
    Normalizes a value into a canonical, order-insensitive, comparable form.

    - A list of dictionaries is reduced to the keys that define each item's
      identity (`idempotency_keys`), and every item becomes a canonical JSON
      string. The result is a set of those strings.
    - A list of hashable values becomes a set.
    - Anything else is returned as-is.

    Server-generated attributes of list items (ids, statuses) are ignored this
    way when a desired list is compared against the observed one.
    """
    if not isinstance(value, list):
        return value

    if not value:
        return set()

    if isinstance(value[0], dict):
        canonical_forms = set()
        for item in value:
            # Mixed lists cannot be normalized reliably. Returning the input
            # makes the comparison fail, which costs one redundant update.
            if not isinstance(item, dict):
                return value
            keys_to_use = idempotency_keys or list(item.keys())
            filtered_item = {}
            for key in keys_to_use:
                normalized = normalize_for_comparison(item.get(key))
                # An empty nested list and a missing one mean the same thing.
                if isinstance(normalized, set) and not normalized:
                    normalized = None
                filtered_item[key] = normalized
            canonical_forms.add(
                json.dumps(filtered_item, sort_keys=True, separators=(",", ":"), default=sorted)
            )
        return canonical_forms

    try:
        return set(value)
    except TypeError:
        return value


def changed_fields(desired: dict, observed: dict, fields, idempotency_keys: dict | None = None) -> set:
    """
    Returns the names of the fields whose desired value differs from the
    observed one.

    A field whose desired value is None is never reported: the user did not
    ask for it, so it must not be reset just because it was omitted.
    """
    idempotency_keys = idempotency_keys or {}
    changes = set()
    for field in fields:
        new_value = desired.get(field)
        if new_value is None:
            continue
        keys = idempotency_keys.get(field)
        old_value = observed.get(field)
        if normalize_for_comparison(new_value, keys) != normalize_for_comparison(old_value, keys):
            changes.add(field)
    return changes


def strip_none(value):
    """Recursively drops None values from dictionaries (Ansible sub-options)."""
    if isinstance(value, dict):
        return {k: strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_none(v) for v in value]
    return value
