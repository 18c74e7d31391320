"""Pydantic models for pathway schemas (input) and form trees (output)."""

from cfp_forms.models.form import (
    ArrayAction,
    ChoiceOption,
    ConditionalNode,
    FieldNode,
    FormNode,
    FormTree,
    FormTreeAdapter,
    GroupNode,
    PlaceholderNode,
    RepeatableNode,
    VisibilityRule,
    find_node,
    iter_fields,
)
from cfp_forms.models.schema import (
    AllOfNode,
    ArrayNode,
    BaseNode,
    LeafNode,
    NodeMetadata,
    OneOfNode,
    PropertiesNode,
    SchemaNode,
    parse_schema,
)

__all__ = [
    # Schema
    "AllOfNode",
    "ArrayNode",
    "BaseNode",
    "LeafNode",
    "NodeMetadata",
    "OneOfNode",
    "PropertiesNode",
    "SchemaNode",
    "parse_schema",
    # Form
    "ArrayAction",
    "ChoiceOption",
    "ConditionalNode",
    "FieldNode",
    "FormNode",
    "FormTree",
    "FormTreeAdapter",
    "GroupNode",
    "PlaceholderNode",
    "RepeatableNode",
    "VisibilityRule",
    "find_node",
    "iter_fields",
]
