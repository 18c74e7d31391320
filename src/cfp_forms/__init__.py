"""cfp_forms — JSON-Schema-driven assessment forms for Cool Farm pathways.

Public API:
    SchemaFormBuilder       — builds a form tree from a pathway schema
    SchemaFormDataExtractor — rebuilds schema-shaped data from submitted values
    AssessmentFormProcessor — facade over both, plus payload defaults
    SchemaStore             — loads pathway schema documents from disk
    OperationMode           — basic / full pruning flag

Keys:
    resolve_value           — find a FieldKey in flat, nested or mixed values
    build_full_key          — join a property name onto its parent FieldKey

Form tree models:
    FieldNode, GroupNode, ConditionalNode, RepeatableNode, PlaceholderNode
    iter_fields             — depth-first (FieldKey, FieldNode) pairs

Remote API interface:
    AssessmentApi           — ABC for the assessment API client
"""

from cfp_forms.builder import SchemaFormBuilder
from cfp_forms.constants import OperationMode
from cfp_forms.extractor import SchemaFormDataExtractor
from cfp_forms.interfaces import AssessmentApi
from cfp_forms.keys import build_full_key, resolve_value
from cfp_forms.models.form import (
    ConditionalNode,
    FieldNode,
    GroupNode,
    PlaceholderNode,
    RepeatableNode,
    iter_fields,
)
from cfp_forms.models.schema import parse_schema
from cfp_forms.processor import AssessmentFormProcessor
from cfp_forms.schema_store import SchemaStore

__all__ = [
    # Builder / extractor
    "SchemaFormBuilder",
    "SchemaFormDataExtractor",
    "AssessmentFormProcessor",
    "SchemaStore",
    "OperationMode",
    "parse_schema",
    # Keys
    "build_full_key",
    "resolve_value",
    # Form tree
    "ConditionalNode",
    "FieldNode",
    "GroupNode",
    "PlaceholderNode",
    "RepeatableNode",
    "iter_fields",
    # Remote API
    "AssessmentApi",
]
