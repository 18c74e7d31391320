"""FieldKey helpers — the naming convention shared by builder and extractor.

A FieldKey is the flat name of one form element.  It is the join of:

  - ancestor property names through ``properties`` nesting (``SEPARATOR``)
  - the allOf group's own key when entering an ``allOf`` member
  - ``{key}_option_{i}`` when entering the i-th ``oneOf`` alternative
  - ``{key}_item_{i}`` when entering the i-th array element

The builder names elements with these helpers and the extractor looks the
same names up again, so both sides must only ever go through this module.

Submitted values may arrive fully flat (every FieldKey at depth 0), fully
nested (values grouped under container keys mirroring the form tree) or a mix
of both; :func:`resolve_value` finds a FieldKey in any of those shapes.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

from cfp_forms.constants import SEPARATOR

# Sentinel for "key not present", distinct from a present None value.
_MISSING = object()

# Suffixes the builder appends to a key when it descends into a structure.
_DERIVED_SUFFIXES = (SEPARATOR, "_option_", "_item_", "_oneof", "_allof", "_allOf")


# ---------------------------------------------------------------------------
# Key construction
# ---------------------------------------------------------------------------

def build_full_key(parent_key: Optional[str], key: str) -> str:
    """Join a property name onto its parent's FieldKey (root when parent is None)."""
    return f"{parent_key}{SEPARATOR}{key}" if parent_key else key


def base_key(key: str) -> str:
    """Last segment of a compound key: ``pesticide__applications`` -> ``applications``."""
    return key.split(SEPARATOR)[-1]


def option_key(key: str, index: int) -> str:
    return f"{key}_option_{index}"


def item_key(key: str, index: int) -> str:
    return f"{key}_item_{index}"


def one_of_key(key: str) -> str:
    return f"{key}_oneof"


def all_of_key(key: str) -> str:
    return f"{key}_allof"


def item_all_of_key(key: str) -> str:
    # Array items historically use a capitalised suffix; renderers depend on it.
    return f"{key}_allOf"


def title_to_key(title: str) -> str:
    """Turn a human title into a key fragment: ``"Fuel Type (L)"`` -> ``fuel_type_l_``."""
    return re.sub(r"[^a-zA-Z0-9]+", "_", title).lower()


def key_to_title(key: str) -> str:
    """Turn a camelCase or snake_case key into a display title.

    ``cropYield`` -> ``Crop Yield``, ``plants_die_percent`` -> ``Plants Die Percent``
    """
    title = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", key)
    title = title.replace("_", " ")
    # ucwords: upper-case the first letter of every word, leave the rest alone
    return " ".join(word[:1].upper() + word[1:] for word in title.split(" "))


# ---------------------------------------------------------------------------
# Key resolution
# ---------------------------------------------------------------------------

def _lookup(values: Mapping, key: str, _seen: Optional[dict] = None) -> Any:
    """Return the value stored for *key* in *values*, or ``_MISSING``.

    Tries an exact match first.  Otherwise every split point of the key is
    tested from the end backward: the prefix is resolved (recursively) as a
    parent container and, when it is a mapping, the full key and then the
    bare suffix are looked up inside it.  First hit wins.

    *_seen* memoises prefixes already resolved during one lookup, so the
    cost stays polynomial in the number of key segments.
    """
    if key in values:
        return values[key]
    if _seen is None:
        _seen = {}
    elif key in _seen:
        return _seen[key]

    found = _MISSING
    parts = key.split(SEPARATOR)
    for i in range(len(parts) - 1, 0, -1):
        parent = SEPARATOR.join(parts[:i])
        child = SEPARATOR.join(parts[i:])

        container = _lookup(values, parent, _seen)
        if not isinstance(container, Mapping):
            continue
        if key in container:
            found = container[key]
            break
        if child in container:
            found = container[child]
            break

    _seen[key] = found
    return found


def resolve_value(values: Mapping, key: str, default: Any = None) -> Any:
    """Find the submitted value for a FieldKey in a flat or nested value map.

    Args:
        values: submitted values, flat (``{"area__value": "1"}``), nested
                (``{"area": {"value": "1"}}``) or mixed
        key: the FieldKey to resolve
        default: returned when the key cannot be resolved

    Returns:
        The raw submitted value, or *default*.
    """
    if not isinstance(values, Mapping):
        return default
    found = _lookup(values, key)
    return default if found is _MISSING else found


def has_value_for(values: Mapping, key: str) -> bool:
    """True if *values* holds an entry for *key* or for any key derived from it.

    Used to decide whether a section pruned from the form was nonetheless
    submitted (e.g. default-injected by the caller).
    """
    if not isinstance(values, Mapping):
        return False
    if _lookup(values, key) is not _MISSING:
        return True
    prefixes = tuple(key + suffix for suffix in _DERIVED_SUFFIXES)
    return any(isinstance(k, str) and k.startswith(prefixes) for k in values)
