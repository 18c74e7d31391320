"""Form tree models — the output of :class:`~cfp_forms.builder.SchemaFormBuilder`.

A form tree is an ordered mapping ``FieldKey -> FormNode`` mirroring the
schema's shape.  Node kinds map to rendering components:

  Leaves (``FieldNode.kind``):
    - text / textarea: string input
    - select: single choice over enum values
    - number: numeric input with optional min/max/step
    - checkbox: boolean
    - unsupported: inert explanatory leaf

  Groups:
    - group: fieldset (``properties``) or collapsible details (``allOf``)
    - conditional: radio-style discriminant of a ``oneOf``; its branches are
      sibling groups carrying a ``visible_when`` rule
    - repeatable: array of complex items, pre-built with one item
    - placeholder: key reserved for a pruned section, renders nothing

The discriminated ``FormNode`` union uses ``kind`` for leaves and groups alike,
so a serialised tree can be read back with ``FormTreeAdapter``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class VisibilityRule(BaseModel):
    """Show the element only while discriminant ``field`` equals ``equals``."""

    field: str
    equals: int


class ChoiceOption(BaseModel):
    """A selectable value with its display label."""

    value: Any
    label: str


# --- Leaves ---

class FieldNode(BaseModel):
    """A single input control."""

    kind: Literal["text", "textarea", "select", "number", "checkbox", "unsupported"]
    label: str
    description: Optional[str] = None
    required: bool = False
    options: Optional[list[ChoiceOption]] = None
    min: Optional[Union[int, float]] = None
    max: Optional[Union[int, float]] = None
    step: Optional[Union[int, str]] = None
    # Unit shown after numeric inputs (from x-unit)
    suffix: Optional[str] = None
    default: Any = None
    # Explanation rendered by unsupported leaves
    message: Optional[str] = None
    visible_when: Optional[VisibilityRule] = None


class PlaceholderNode(BaseModel):
    """Key reserved for a section pruned in basic mode; renders nothing."""

    kind: Literal["placeholder"] = "placeholder"


# --- Groups ---

class GroupNode(BaseModel):
    """Container for nested elements.

    ``collapsible`` is set for allOf groups (details) and unset for plain
    objects (fieldset).  Branch containers of a conditional carry
    ``visible_when`` and usually no title.
    """

    kind: Literal["group"] = "group"
    title: Optional[str] = None
    description: Optional[str] = None
    required: bool = False
    collapsible: bool = False
    css_class: Optional[str] = None
    visible_when: Optional[VisibilityRule] = None
    children: dict[str, FormNode] = {}


class ConditionalNode(BaseModel):
    """Radio-style discriminant for a ``oneOf``.

    ``branches`` lists the FieldKeys of the sibling branch groups in option
    order; branch ``i`` is visible while this field's value equals ``i``.
    """

    kind: Literal["conditional"] = "conditional"
    title: str
    options: list[ChoiceOption]
    default: int = 0
    required: bool = False
    branches: list[str] = []
    visible_when: Optional[VisibilityRule] = None


class ArrayAction(BaseModel):
    """The "add item" button of a repeatable group (disabled: static forms)."""

    name: str
    label: str
    disabled: bool = True


class RepeatableNode(BaseModel):
    """Array of complex items; ``items`` maps item FieldKeys to item groups."""

    kind: Literal["repeatable"] = "repeatable"
    title: str
    description: Optional[str] = None
    items: dict[str, GroupNode] = {}
    add_item: ArrayAction
    message: Optional[str] = None
    visible_when: Optional[VisibilityRule] = None


FormNode = Annotated[
    Union[FieldNode, PlaceholderNode, GroupNode, ConditionalNode, RepeatableNode],
    Field(discriminator="kind"),
]

# FieldKey -> FormNode, in schema declaration order.
FormTree = dict[str, FormNode]

GroupNode.model_rebuild()
RepeatableNode.model_rebuild()

FormTreeAdapter: TypeAdapter = TypeAdapter(FormTree)


def iter_fields(tree: dict[str, Any]) -> Iterator[tuple[str, FieldNode]]:
    """Yield ``(FieldKey, FieldNode)`` for every leaf, depth-first.

    Descends into groups (including conditional branches) and into every
    pre-built item of a repeatable group.
    """
    for key, node in tree.items():
        if isinstance(node, FieldNode):
            yield key, node
        elif isinstance(node, GroupNode):
            yield from iter_fields(node.children)
        elif isinstance(node, RepeatableNode):
            yield from iter_fields(node.items)


def find_node(tree: dict[str, Any], key: str) -> Any:
    """Return the node stored under *key* anywhere in the tree, or None."""
    if key in tree:
        return tree[key]
    for node in tree.values():
        if isinstance(node, GroupNode):
            found = find_node(node.children, key)
        elif isinstance(node, RepeatableNode):
            found = find_node(node.items, key)
        else:
            continue
        if found is not None:
            return found
    return None
