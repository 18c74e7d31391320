"""SchemaFormDataExtractor: rebuilds schema-shaped data from submitted values.

The exact structural inverse of :class:`~cfp_forms.builder.SchemaFormBuilder`.
It walks the same parsed schema, computes the same FieldKeys and looks each
one up in the submitted value map with :func:`~cfp_forms.keys.resolve_value`,
so flat, nested and mixed submissions all extract identically.

Nothing here raises on shape or value problems: unresolvable keys yield
None, malformed array containers yield ``[]`` and unparseable numbers are
logged and dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from cfp_forms.builder import leaf_field_key
from cfp_forms.constants import DEFAULT_OPERATION_MODE, ITEMS_WRAPPER, OperationMode
from cfp_forms.keys import (
    all_of_key,
    base_key,
    build_full_key,
    has_value_for,
    item_all_of_key,
    item_key,
    one_of_key,
    option_key,
    resolve_value,
)
from cfp_forms.models.schema import (
    AllOfNode,
    ArrayNode,
    BaseNode,
    OneOfNode,
    PropertiesNode,
    parse_schema,
)

logger = logging.getLogger(__name__)

# Submitted strings that a form surface uses for an unchecked box
_FALSE_STRINGS = frozenset({"", "0", "false", "off", "no"})


def is_empty_choice(value: Any) -> bool:
    """True if a oneOf discriminant value reads as "nothing selected"."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() in ("", "0")
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (Mapping, list, tuple)):
        return len(value) == 0
    return False


def coerce_value(value: Any, ftype: Optional[str], key: str = "") -> Any:
    """Coerce a raw submitted value to the schema's declared type.

    ``None`` and ``""`` mean "no value" and are returned as None for every
    type, so that a present falsy answer (``False``, ``0``) stays distinct
    from an unanswered one.
    """
    if value is None or value == "":
        return None

    ftype = ftype or "string"
    try:
        if ftype == "integer":
            if isinstance(value, str):
                text = value.strip()
                try:
                    return int(text)
                except ValueError:
                    return int(float(text))
            return int(value)
        if ftype == "number":
            return float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Unparseable %s value %r for %s, treating as empty", ftype, value, key)
        return None

    if ftype == "boolean":
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        return bool(value)
    if ftype == "string":
        return str(value)
    if ftype == "array":
        return list(value) if isinstance(value, (list, tuple)) else []
    if ftype == "object":
        return dict(value) if isinstance(value, Mapping) else {}
    return value


class SchemaFormDataExtractor:
    """Extracts nested data matching a pathway schema from submitted values.

    Stateless; safe to share between concurrent submissions.  Input values
    are never mutated.
    """

    def extract(
        self,
        schema: Any,
        values: Mapping,
        mode: Union[OperationMode, str] = DEFAULT_OPERATION_MODE,
    ) -> dict[str, Any]:
        """Extract the schema-shaped payload from *values*.

        Args:
            schema: raw schema document or parsed node
            values: submitted values keyed by FieldKey (flat, nested or mixed)
            mode: in basic mode ignored sections are omitted unless submitted

        Returns:
            Nested dict in schema declaration order; ``{}`` when the root
            declares no properties.

        Raises:
            ValueError: if *mode* is not a valid operation mode
        """
        mode = OperationMode(mode)
        root = parse_schema(schema)
        if not isinstance(root, PropertiesNode):
            return {}
        if not isinstance(values, Mapping):
            logger.warning("Submitted values are not a mapping (%s), extracting blanks", type(values).__name__)
            values = {}
        return self._extract_properties(root, values, None, mode)

    # ------------------------------------------------------------------
    # Properties and dispatch
    # ------------------------------------------------------------------

    def _extract_properties(
        self,
        node: PropertiesNode,
        values: Mapping,
        parent_key: Optional[str],
        mode: OperationMode,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name, prop in node.properties.items():
            full_key = build_full_key(parent_key, name)

            if mode == OperationMode.BASIC and name in node.ignored:
                if not has_value_for(values, full_key):
                    continue
                logger.debug("Ignored section %s was submitted, extracting it", full_key)

            data[name] = self._extract_property(prop, values, full_key, mode)
        return data

    def _extract_property(self, node: BaseNode, values: Mapping, key: str, mode: OperationMode) -> Any:
        if isinstance(node, AllOfNode):
            return self._extract_all_of(node, values, key, mode)
        if isinstance(node, OneOfNode):
            return self._extract_one_of(node, values, key, mode)
        if isinstance(node, PropertiesNode):
            return self._extract_properties(node, values, key, mode)
        if isinstance(node, ArrayNode):
            return self._extract_array(node, values, key, mode)
        return self._extract_scalar(node, values, key)

    # ------------------------------------------------------------------
    # Combinators
    # ------------------------------------------------------------------

    def _extract_all_of(self, node: AllOfNode, values: Mapping, key: str, mode: OperationMode) -> dict[str, Any]:
        data: dict[str, Any] = {}

        def merge(contribution: Any) -> None:
            if isinstance(contribution, Mapping):
                for k, v in contribution.items():
                    data.setdefault(k, v)

        for member in node.all_of:
            if isinstance(member, AllOfNode):
                merge(self._extract_all_of(member, values, member.slug or key, mode))
            elif isinstance(member, PropertiesNode):
                merge(self._extract_properties(member, values, key, mode))
            elif isinstance(member, OneOfNode):
                merge(self._extract_one_of(member, values, member.slug or one_of_key(key), mode))
            else:
                field_name = leaf_field_key(member)
                if field_name is not None and field_name not in data:
                    data[field_name] = self._extract_property(
                        member, values, build_full_key(key, field_name), mode
                    )
        return data

    def _extract_one_of(self, node: OneOfNode, values: Mapping, key: str, mode: OperationMode) -> Optional[dict]:
        choice = resolve_value(values, key)
        if node.has_null_option and is_empty_choice(choice):
            return None

        # Every non-null branch contributes its shape, whatever the discriminant says
        merged: dict[str, Any] = {}
        for i, alt in enumerate(node.one_of):
            if alt.type == "null":
                continue
            branch = self._extract_branch(alt, values, option_key(key, i), mode)
            if not isinstance(branch, Mapping):
                continue
            for k, v in branch.items():
                if k not in merged or (merged[k] is None and v is not None):
                    merged[k] = v
        return merged

    def _extract_branch(self, alt: BaseNode, values: Mapping, branch_key: str, mode: OperationMode) -> Any:
        if isinstance(alt, PropertiesNode):
            return self._extract_properties(alt, values, branch_key, mode)
        if isinstance(alt, AllOfNode):
            return self._extract_all_of(alt, values, all_of_key(branch_key), mode)
        if isinstance(alt, OneOfNode):
            return self._extract_one_of(alt, values, one_of_key(branch_key), mode)
        return None

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def _extract_array(self, node: ArrayNode, values: Mapping, key: str, mode: OperationMode) -> list:
        if not node.is_complex:
            return coerce_value(resolve_value(values, key), "array", key) or []

        container = values.get(key)
        if not (isinstance(container, Mapping) and ITEMS_WRAPPER in container):
            container = resolve_value(values, key)
        if not isinstance(container, Mapping) or not isinstance(container.get(ITEMS_WRAPPER), Mapping):
            if container is not None:
                logger.warning("Array container for %s has no %s marker, extracting []", key, ITEMS_WRAPPER)
            return []

        wrapper = container[ITEMS_WRAPPER]
        data = []
        index = 0
        while True:
            current = item_key(key, index)
            item_values = wrapper.get(current)
            if item_values is None:
                current = item_key(base_key(key), index)
                item_values = wrapper.get(current)
            if item_values is None:
                break
            if isinstance(item_values, Mapping):
                item = self._extract_item(node.items, item_values, current, mode)
                if isinstance(item, Mapping) and item:
                    data.append(item)
            else:
                logger.warning("Array item %s is not a mapping, skipped", current)
            index += 1
        return data

    def _extract_item(self, items: BaseNode, values: Mapping, current: str, mode: OperationMode) -> Any:
        # Items are always extracted from their own nested value map
        if isinstance(items, AllOfNode):
            return self._extract_all_of(items, values, items.slug or item_all_of_key(current), mode)
        if isinstance(items, OneOfNode):
            return self._extract_one_of(items, values, items.slug or one_of_key(current), mode)
        if isinstance(items, PropertiesNode):
            return self._extract_properties(items, values, current, mode)
        return {}

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def _extract_scalar(self, node: BaseNode, values: Mapping, key: str) -> Any:
        raw = resolve_value(values, key)
        if node.malformed:
            return raw
        return coerce_value(raw, node.type, key)
