"""SchemaFormBuilder: turns a pathway JSON Schema into a form tree.

The builder walks the parsed schema once and emits a ``FieldKey -> FormNode``
mapping.  Each property is dispatched in strict priority order:

    1. ignored      basic mode and the name is in the parent's ``ignored``
    2. allOf        collapsible group merging every member
    3. oneOf        conditional discriminant plus one branch group per option
    4. properties   plain (fieldset) group
    5. leaf/array   by declared ``type``

Operation mode is threaded through every call, never read from global state.
Required-ness travels as a traversal argument; schema nodes are never
annotated in place.

Usage::

    builder = SchemaFormBuilder()
    tree = builder.build(schema, OperationMode.FULL)
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from cfp_forms.constants import DEFAULT_OPERATION_MODE, TEXTAREA_MIN_LENGTH, OperationMode
from cfp_forms.keys import (
    all_of_key,
    base_key,
    build_full_key,
    item_all_of_key,
    item_key,
    key_to_title,
    one_of_key,
    option_key,
    title_to_key,
)
from cfp_forms.models.form import (
    ArrayAction,
    ChoiceOption,
    ConditionalNode,
    FieldNode,
    GroupNode,
    PlaceholderNode,
    RepeatableNode,
    VisibilityRule,
)
from cfp_forms.models.schema import (
    AllOfNode,
    ArrayNode,
    BaseNode,
    LeafNode,
    OneOfNode,
    PropertiesNode,
    parse_schema,
)

logger = logging.getLogger(__name__)

UNSUPPORTED_ARRAY_MESSAGE = 'Array field type is defined, but the "items" definition is missing or unsupported.'
ARRAY_INITIALIZED_MESSAGE = (
    "Array structure initialized with one item. Further items are added by "
    "the rendering surface calling build_item with increasing indices."
)


def element_title(node: BaseNode, key: str) -> str:
    """Display title: metadata name, then schema title, then the key itself."""
    if node.display_name:
        return node.display_name
    if node.title:
        return node.title
    return key_to_title(base_key(key))


def leaf_field_key(node: BaseNode) -> Optional[str]:
    """Field key for a bare leaf descriptor inside an ``allOf``.

    Such members only name a single field: the key comes from the title,
    or ``enum_field`` for an untitled enum.  Anything else yields None.
    """
    if node.title:
        return title_to_key(node.title)
    if isinstance(node, LeafNode) and node.enum is not None:
        return "enum_field"
    return None


def numeric_step(node: LeafNode) -> Union[int, str]:
    """Step for a numeric input.

    ``"any"`` as soon as a declared bound is non-integral (``10.0`` counts as
    integral).  Otherwise integers step by 1, and numbers only when both
    bounds are declared.
    """
    bounds = [b for b in (node.minimum, node.maximum) if b is not None]
    if any(not float(b).is_integer() for b in bounds):
        return "any"
    if node.type == "integer":
        return 1
    return 1 if len(bounds) == 2 else "any"


class SchemaFormBuilder:
    """Builds a form tree from a pathway schema.

    The builder holds no state between calls; one instance can serve any
    number of concurrent builds.
    """

    def build(
        self,
        schema: Any,
        mode: Union[OperationMode, str] = DEFAULT_OPERATION_MODE,
    ) -> dict[str, Any]:
        """Build the form tree for *schema*.

        Args:
            schema: raw schema document (decoded JSON/YAML) or parsed node
            mode: operation mode; basic prunes ignored sections and arrays

        Returns:
            Ordered mapping ``FieldKey -> FormNode``.  Empty when the root
            declares no properties.

        Raises:
            ValueError: if *mode* is not a valid operation mode
        """
        mode = OperationMode(mode)
        root = parse_schema(schema)
        form: dict[str, Any] = {}
        if not isinstance(root, PropertiesNode):
            logger.debug("Schema root has no properties, nothing to build")
            return form

        self._build_properties(form, root, None, root.required, mode, in_branch=False)
        return form

    def build_item(
        self,
        key: str,
        array_schema: Any,
        index: int,
        mode: Union[OperationMode, str] = DEFAULT_OPERATION_MODE,
    ) -> tuple[str, GroupNode]:
        """Build the *index*-th item of the array stored under *key*.

        Public so that a surrounding UI can add items by calling it with
        increasing indices.

        Returns:
            ``(item FieldKey, item group)``
        """
        node = parse_schema(array_schema)
        items = node.items if isinstance(node, ArrayNode) else None
        return self._build_item(key, items, index, OperationMode(mode), in_branch=False)

    # ------------------------------------------------------------------
    # Properties and dispatch
    # ------------------------------------------------------------------

    def _build_properties(
        self,
        form: dict[str, Any],
        node: PropertiesNode,
        parent_key: Optional[str],
        required: list[str],
        mode: OperationMode,
        in_branch: bool,
    ) -> None:
        for name, prop in node.properties.items():
            full_key = build_full_key(parent_key, name)

            if mode == OperationMode.BASIC and name in node.ignored:
                form[full_key] = PlaceholderNode()
                continue

            is_required = not in_branch and name in required
            self._build_property(form, full_key, prop, is_required, mode, in_branch)

    def _build_property(
        self,
        form: dict[str, Any],
        key: str,
        node: BaseNode,
        is_required: bool,
        mode: OperationMode,
        in_branch: bool,
    ) -> None:
        if isinstance(node, AllOfNode):
            self._build_all_of(form, key, node, is_required, mode, in_branch)
        elif isinstance(node, OneOfNode):
            self._build_conditional(form, key, node, is_required, mode)
        elif isinstance(node, PropertiesNode):
            self._build_object(form, key, node, is_required, mode, in_branch)
        else:
            self._build_simple_field(form, key, node, is_required, mode, in_branch)

    # ------------------------------------------------------------------
    # allOf
    # ------------------------------------------------------------------

    def _build_all_of(
        self,
        form: dict[str, Any],
        key: str,
        node: AllOfNode,
        is_required: bool,
        mode: OperationMode,
        in_branch: bool,
        title: Optional[str] = None,
    ) -> None:
        title = title or element_title(node, key)
        group = GroupNode(title=title, description=node.description, collapsible=True)
        has_required = False

        for member in node.all_of:
            if isinstance(member, AllOfNode):
                if member.slug:
                    # A slugged member becomes its own sub-group
                    nested_title = member.display_name or title
                    self._build_all_of(
                        group.children, member.slug, member, False, mode, in_branch, title=nested_title
                    )
                else:
                    has_required = self._build_all_of_members(
                        group, key, member, mode, in_branch
                    ) or has_required
            elif isinstance(member, PropertiesNode):
                has_required = has_required or bool(member.required)
                required = [] if in_branch else member.required
                self._build_properties(group.children, member, key, required, mode, in_branch)
            elif isinstance(member, OneOfNode):
                self._build_conditional(
                    group.children, member.slug or one_of_key(key), member, False, mode
                )
            else:
                field_name = leaf_field_key(member)
                if field_name is None:
                    logger.debug("allOf member under %s names no field, skipped", key)
                    continue
                self._build_simple_field(
                    group.children, build_full_key(key, field_name), member, False, mode, in_branch
                )

        self._mark_required(group, (has_required or is_required) and not in_branch, "required-details")
        form[key] = group

    def _build_all_of_members(
        self,
        group: GroupNode,
        key: str,
        node: AllOfNode,
        mode: OperationMode,
        in_branch: bool,
    ) -> bool:
        """Flatten an unslugged nested allOf into *group*, keyed under *key*.

        Returns True if any flattened member declares required fields.
        """
        # Build into a scratch group and lift its children and required flag
        scratch: dict[str, Any] = {}
        self._build_all_of(scratch, key, node, False, mode, in_branch, title=group.title)
        nested = scratch[key]
        group.children.update(nested.children)
        return nested.required

    # ------------------------------------------------------------------
    # oneOf
    # ------------------------------------------------------------------

    def _build_conditional(
        self,
        form: dict[str, Any],
        key: str,
        node: OneOfNode,
        is_required: bool,
        mode: OperationMode,
    ) -> None:
        options = [
            ChoiceOption(value=i, label=alt.title or f"Option {i + 1}")
            for i, alt in enumerate(node.one_of)
        ]
        branches = [option_key(key, i) for i in range(len(node.one_of))]
        form[key] = ConditionalNode(
            title=element_title(node, key),
            options=options,
            default=0,
            required=is_required,
            branches=branches,
        )

        # Every branch is pre-built; visibility follows the discriminant
        for i, alt in enumerate(node.one_of):
            branch_key = branches[i]
            branch = GroupNode(visible_when=VisibilityRule(field=key, equals=i))
            self._build_branch_content(branch, branch_key, alt, mode)
            form[branch_key] = branch

    def _build_branch_content(
        self,
        branch: GroupNode,
        branch_key: str,
        alt: BaseNode,
        mode: OperationMode,
    ) -> None:
        if isinstance(alt, PropertiesNode):
            self._build_properties(branch.children, alt, branch_key, [], mode, in_branch=True)
        elif isinstance(alt, AllOfNode):
            self._build_all_of(branch.children, all_of_key(branch_key), alt, False, mode, in_branch=True)
        elif isinstance(alt, OneOfNode):
            self._build_conditional(branch.children, one_of_key(branch_key), alt, False, mode)

    # ------------------------------------------------------------------
    # Plain objects
    # ------------------------------------------------------------------

    def _build_object(
        self,
        form: dict[str, Any],
        key: str,
        node: PropertiesNode,
        is_required: bool,
        mode: OperationMode,
        in_branch: bool,
    ) -> None:
        group = GroupNode(title=element_title(node, key), description=node.description)
        self._mark_required(group, (is_required or bool(node.required)) and not in_branch, "required-fieldset")

        # Required fields under a conditional branch are not enforced
        required = [] if in_branch else node.required
        self._build_properties(group.children, node, key, required, mode, in_branch)
        form[key] = group

    @staticmethod
    def _mark_required(group: GroupNode, required: bool, css_class: str) -> None:
        if not required:
            return
        group.required = True
        group.title = f"{group.title} *"
        group.css_class = css_class

    # ------------------------------------------------------------------
    # Leaves and arrays
    # ------------------------------------------------------------------

    def _build_simple_field(
        self,
        form: dict[str, Any],
        key: str,
        node: BaseNode,
        is_required: bool,
        mode: OperationMode,
        in_branch: bool,
    ) -> None:
        if isinstance(node, ArrayNode) and mode == OperationMode.BASIC:
            logger.debug("Skipping array field %s in basic mode", key)
            return

        title = element_title(node, key)
        if node.malformed:
            logger.warning("Malformed schema node at %s", key)
            form[key] = FieldNode(
                kind="unsupported", label=title, message="Unsupported field type: malformed"
            )
            return

        ftype = node.type or "string"
        if isinstance(node, ArrayNode):
            form[key] = self._build_array(key, node, title, mode, in_branch)
        elif ftype == "object":
            form[key] = GroupNode(title=title, description=node.description)
        elif isinstance(node, LeafNode) and ftype in ("string", "integer", "number", "boolean"):
            form[key] = self._build_leaf(node, ftype, title, is_required)
        else:
            logger.warning("Unsupported field type %r at %s", ftype, key)
            form[key] = FieldNode(
                kind="unsupported",
                label=title,
                description=node.description,
                message=f"Unsupported field type: {ftype}",
            )

    @staticmethod
    def _build_leaf(node: LeafNode, ftype: str, title: str, is_required: bool) -> FieldNode:
        field: dict[str, Any] = {
            "label": title,
            "description": node.description,
            "required": is_required,
            "default": node.default,
        }
        if ftype == "string":
            if node.enum is not None:
                field["kind"] = "select"
                field["options"] = [ChoiceOption(value=v, label=str(v)) for v in node.enum]
            elif node.max_length is not None and node.max_length > TEXTAREA_MIN_LENGTH:
                field["kind"] = "textarea"
            else:
                field["kind"] = "text"
        elif ftype in ("integer", "number"):
            field["kind"] = "number"
            field["min"] = node.minimum
            field["max"] = node.maximum
            field["step"] = numeric_step(node)
            field["suffix"] = node.unit
        else:
            # An unchecked box must stay a legal answer
            field["kind"] = "checkbox"
            field["required"] = False
        return FieldNode(**field)

    def _build_array(
        self,
        key: str,
        node: ArrayNode,
        title: str,
        mode: OperationMode,
        in_branch: bool,
    ) -> Union[RepeatableNode, FieldNode]:
        if not node.is_complex:
            return FieldNode(
                kind="unsupported",
                label=title,
                description=node.description,
                message=UNSUPPORTED_ARRAY_MESSAGE,
            )

        first_key, first_item = self._build_item(key, node.items, 0, mode, in_branch)
        return RepeatableNode(
            title=title,
            description=node.description,
            items={first_key: first_item},
            add_item=ArrayAction(name=f"{key}_add_more", label=f"Add {title} Item"),
            message=ARRAY_INITIALIZED_MESSAGE,
        )

    def _build_item(
        self,
        key: str,
        items: Optional[BaseNode],
        index: int,
        mode: OperationMode,
        in_branch: bool,
    ) -> tuple[str, GroupNode]:
        current = item_key(key, index)
        item = GroupNode()

        if isinstance(items, AllOfNode):
            title = items.display_name or items.title or f"{key_to_title(base_key(key))} {index + 1}"
            self._build_all_of(
                item.children, items.slug or item_all_of_key(current), items, False, mode, in_branch, title=title
            )
        elif isinstance(items, OneOfNode):
            self._build_conditional(item.children, items.slug or one_of_key(current), items, False, mode)
        elif isinstance(items, PropertiesNode):
            required = [] if in_branch else items.required
            self._build_properties(item.children, items, current, required, mode, in_branch)
        else:
            logger.debug("Array item schema under %s has no structure to build", key)

        return current, item
