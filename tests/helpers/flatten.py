"""Simulate a rendering surface filling a built form with known data.

``flatten(schema, data)`` walks the raw schema document (not the parsed
models) and emits the flat value map a user would submit after entering
*data* into the form, following the FieldKey naming rules:

    property nesting      parent__child
    oneOf alternative     {key}_option_{i}    discriminant under {key}
    oneOf branch allOf    {option}_allof
    oneOf in allOf        slug or {group}_oneof
    array item            {key}_item_{i}       inside {key}: {items_wrapper: ...}
    allOf array item      slug or {item}_allOf
    oneOf array item      slug or {item}_oneof

``nest(flat)`` regroups a flat map into nested containers, the shape some
rendering layers submit instead.
"""

import re
from typing import Any

SEP = "__"
WRAPPER = "items_wrapper"


def _join(parent, key):
    return f"{parent}{SEP}{key}" if parent else key


def _form_value(value):
    """What a browser would post for *value*."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value) if isinstance(value, (int, float)) else value


def _slug(schema):
    meta = schema.get("x-metadata") or schema.get("metadata") or {}
    return meta.get("slug")


def _field_names(schema):
    """Property names a (possibly combinator) schema contributes."""
    names = set(schema.get("properties", {}))
    for member in schema.get("allOf", []):
        names |= _field_names(member)
        if "title" in member and "properties" not in member and "allOf" not in member:
            names.add(re.sub(r"[^a-zA-Z0-9]+", "_", member["title"]).lower())
    return names


def _pick_alternative(alternatives, value):
    """Index of the first non-null alternative that can hold the answered part of *value*."""
    answered = {k for k, v in value.items() if v is not None}
    for i, alt in enumerate(alternatives):
        if alt.get("type") == "null":
            continue
        if answered <= _field_names(alt):
            return i
    raise AssertionError(f"No oneOf alternative fits {value!r}")


def flatten_properties(schema, data, parent, out):
    for name, prop in schema.get("properties", {}).items():
        if name in data:
            flatten_property(prop, data[name], _join(parent, name), out)


def flatten_property(schema, value, key, out):
    if "allOf" in schema:
        flatten_all_of(schema, value, key, out)
    elif "oneOf" in schema:
        flatten_one_of(schema, value, key, out)
    elif "properties" in schema:
        flatten_properties(schema, value, key, out)
    elif schema.get("type") == "array":
        flatten_array(schema, value, key, out)
    else:
        out[key] = _form_value(value)


def flatten_all_of(schema, value, key, out):
    for member in schema["allOf"]:
        if "allOf" in member:
            flatten_all_of(member, value, _slug(member) or key, out)
        elif "properties" in member:
            flatten_properties(member, value, key, out)
        elif "oneOf" in member:
            names = _field_names({"allOf": [a for a in member["oneOf"]]})
            flatten_one_of(member, {k: v for k, v in value.items() if k in names}, _slug(member) or f"{key}_oneof", out)
        elif "title" in member:
            field = re.sub(r"[^a-zA-Z0-9]+", "_", member["title"]).lower()
            if field in value:
                out[_join(key, field)] = _form_value(value[field])


def flatten_one_of(schema, value, key, out):
    alternatives = schema["oneOf"]
    if value is None:
        nulls = [i for i, alt in enumerate(alternatives) if alt.get("type") == "null"]
        out[key] = str(nulls[0]) if nulls else ""
        return

    index = _pick_alternative(alternatives, value)
    out[key] = str(index)
    branch = alternatives[index]
    branch_key = f"{key}_option_{index}"
    if "properties" in branch:
        flatten_properties(branch, value, branch_key, out)
    elif "allOf" in branch:
        flatten_all_of(branch, value, f"{branch_key}_allof", out)


def flatten_array(schema, value, key, out):
    items = schema["items"]
    wrapper = {}
    for i, element in enumerate(value):
        current = f"{key}_item_{i}"
        item_out = {}
        if "allOf" in items:
            flatten_all_of(items, element, _slug(items) or f"{current}_allOf", item_out)
        elif "oneOf" in items:
            flatten_one_of(items, element, _slug(items) or f"{current}_oneof", item_out)
        else:
            flatten_properties(items, element, current, item_out)
        wrapper[current] = item_out
    out[key] = {WRAPPER: wrapper}


def flatten(schema: dict, data: dict) -> dict[str, Any]:
    """Flat submission for *data* entered into the form built from *schema*."""
    out: dict[str, Any] = {}
    flatten_properties(schema, data, None, out)
    return out


def nest(flat: dict) -> dict[str, Any]:
    """Regroup every ``a__b__c`` key as ``{a: {b: {c: ...}}}``, arrays included."""
    nested: dict[str, Any] = {}
    for key, value in flat.items():
        if isinstance(value, dict) and WRAPPER in value:
            value = {WRAPPER: {k: nest(v) for k, v in value[WRAPPER].items()}}
        parts = key.split(SEP)
        target = nested
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return nested
