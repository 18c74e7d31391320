"""Pydantic models for pathway JSON Schema documents.

A pathway schema is an arbitrary JSON Schema document.  It is parsed into a
closed set of node shapes so that the builder and the extractor can dispatch
on the same tagged union and stay structurally symmetric:

  - AllOfNode:      ``{allOf: [...]}`` — conjunction, merged into one group
  - OneOfNode:      ``{oneOf: [...]}`` — mutually exclusive alternatives
  - PropertiesNode: ``{type: object, properties: {...}}``
  - ArrayNode:      ``{type: array, items: {...}}``
  - LeafNode:       scalars, objects without properties, unknown types

The first matching shape in that order wins.  Parsing never raises for shape
problems: malformed keyword values are dropped and non-mapping nodes become
a ``LeafNode`` flagged ``malformed`` so that they render as inert leaves.

Nodes are frozen; the same subtree may be visited several times during a
single traversal (shared allOf members, array items rebuilt per index).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any, ClassVar, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    model_validator,
)

logger = logging.getLogger(__name__)


def _normalize_type(value: Any) -> Optional[str]:
    """Narrow a JSON Schema ``type`` keyword to a single type name.

    ``["number", "null"]`` -> ``"number"``; ``["null"]`` -> ``"null"``.
    Anything that is not a string or list of strings yields None.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        names = [v for v in value if isinstance(v, str)]
        for name in names:
            if name != "null":
                return name
        return names[0] if names else None
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# --- Keyword sanitising: keyword -> predicate its value must satisfy ---
_KEYWORD_CHECKS: dict[str, Any] = {
    "title": lambda v: isinstance(v, str),
    "description": lambda v: isinstance(v, str),
    "enum": lambda v: isinstance(v, list),
    "minimum": _is_number,
    "maximum": _is_number,
    "maxLength": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "x-unit": lambda v: isinstance(v, str),
    "x-metadata": lambda v: isinstance(v, Mapping),
    "metadata": lambda v: isinstance(v, Mapping),
    "items": lambda v: isinstance(v, Mapping),
}


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class NodeMetadata(BaseModel):
    """Display metadata (``x-metadata``) carried by pathway schema nodes.

    ``name`` is used as a group title; ``slug`` as a stable key fragment.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    name: Optional[str] = None
    slug: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _drop_non_strings(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return {}
        data = dict(data)
        for name in ("name", "slug"):
            if name in data and not isinstance(data[name], str):
                del data[name]
        return data


# ---------------------------------------------------------------------------
# Node shapes
# ---------------------------------------------------------------------------

class BaseNode(BaseModel):
    """Keywords shared by every node shape."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    # Tag used by the SchemaNode discriminator
    node_kind: ClassVar[str] = ""

    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[NodeMetadata] = Field(
        default=None, validation_alias=AliasChoices("x-metadata", "metadata")
    )
    required: list[str] = []
    default: Any = None
    # True when the raw node was not a mapping at all
    malformed: bool = False

    @model_validator(mode="before")
    @classmethod
    def _sanitize(cls, data: Any) -> Any:
        if isinstance(data, BaseNode):
            return data
        if not isinstance(data, Mapping):
            return {"malformed": True}
        data = {str(k): v for k, v in data.items()}
        if "type" in data:
            data["type"] = _normalize_type(data["type"])
        for keyword, check in _KEYWORD_CHECKS.items():
            if keyword in data and not check(data[keyword]):
                del data[keyword]
        required = data.get("required")
        data["required"] = [r for r in required if isinstance(r, str)] if isinstance(required, list) else []
        return data

    @property
    def display_name(self) -> Optional[str]:
        """``x-metadata.name``, if declared."""
        return self.metadata.name if self.metadata else None

    @property
    def slug(self) -> Optional[str]:
        """``x-metadata.slug``, if declared."""
        return self.metadata.slug if self.metadata else None


class AllOfNode(BaseNode):
    """Conjunction of sibling schemas, presented as one group."""

    node_kind: ClassVar[str] = "allOf"

    all_of: list[SchemaNode] = Field(alias="allOf")


class OneOfNode(BaseNode):
    """Mutually exclusive alternatives; exactly one is selected at a time."""

    node_kind: ClassVar[str] = "oneOf"

    one_of: list[SchemaNode] = Field(alias="oneOf")

    @property
    def has_null_option(self) -> bool:
        """True if one alternative is ``{type: null}`` (the "opt out" choice)."""
        return any(alt.type == "null" for alt in self.one_of)


class PropertiesNode(BaseNode):
    """Plain object with named properties, in declaration order."""

    node_kind: ClassVar[str] = "properties"

    properties: dict[str, SchemaNode]
    # Property names pruned from the form in basic mode
    ignored: list[str] = []

    @model_validator(mode="before")
    @classmethod
    def _sanitize_properties(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            data["properties"] = {str(k): v for k, v in data.get("properties", {}).items()}
            ignored = data.get("ignored")
            data["ignored"] = [i for i in ignored if isinstance(i, str)] if isinstance(ignored, list) else []
        return data


class ArrayNode(BaseNode):
    """Array whose elements all follow ``items``."""

    node_kind: ClassVar[str] = "array"

    items: Optional[SchemaNode] = None

    @property
    def is_complex(self) -> bool:
        """True if items are objects or combinators (the only supported arrays)."""
        items = self.items
        if items is None:
            return False
        return items.type == "object" or isinstance(items, (AllOfNode, OneOfNode))


class LeafNode(BaseNode):
    """Scalar field, object without properties, or unrecognised type."""

    node_kind: ClassVar[str] = "leaf"

    enum: Optional[list[Any]] = None
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    unit: Optional[str] = Field(default=None, alias="x-unit")


# ---------------------------------------------------------------------------
# Tagged union
# ---------------------------------------------------------------------------

def _node_kind(raw: Any) -> str:
    """Pick the node shape for a raw schema mapping (or a parsed node)."""
    if isinstance(raw, BaseNode):
        return raw.node_kind
    if isinstance(raw, Mapping):
        if isinstance(raw.get("allOf"), list):
            return AllOfNode.node_kind
        if isinstance(raw.get("oneOf"), list):
            return OneOfNode.node_kind
        if isinstance(raw.get("properties"), Mapping):
            return PropertiesNode.node_kind
        if _normalize_type(raw.get("type")) == "array":
            return ArrayNode.node_kind
    return LeafNode.node_kind


SchemaNode = Annotated[
    Union[
        Annotated[AllOfNode, Tag("allOf")],
        Annotated[OneOfNode, Tag("oneOf")],
        Annotated[PropertiesNode, Tag("properties")],
        Annotated[ArrayNode, Tag("array")],
        Annotated[LeafNode, Tag("leaf")],
    ],
    Discriminator(_node_kind),
]

for _model in (AllOfNode, OneOfNode, PropertiesNode, ArrayNode, LeafNode):
    _model.model_rebuild()

_schema_adapter: TypeAdapter = TypeAdapter(SchemaNode)


def parse_schema(raw: Any) -> SchemaNode:
    """Parse a raw (decoded JSON/YAML) schema document into typed nodes.

    Already-parsed nodes are returned as-is.  Input that still fails
    validation after sanitising degrades to a malformed ``LeafNode``.
    """
    if isinstance(raw, BaseNode):
        return raw
    try:
        return _schema_adapter.validate_python(raw)
    except ValidationError as exc:
        logger.warning("Schema document could not be parsed, rendering inert: %s", exc)
        return LeafNode(malformed=True)
