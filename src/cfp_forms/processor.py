"""AssessmentFormProcessor: facade pairing the form builder and the extractor.

Callers (the server, scripts) use this instead of the two components
directly.  On top of plain extraction it produces the request payload for the
remote assessment API: sections pruned from the form in basic mode are filled
with the defaults the API expects.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from cfp_forms.builder import SchemaFormBuilder
from cfp_forms.constants import DEFAULT_OPERATION_MODE, IGNORED_SECTION_DEFAULTS, OperationMode
from cfp_forms.extractor import SchemaFormDataExtractor
from cfp_forms.models.schema import PropertiesNode, parse_schema

logger = logging.getLogger(__name__)


class AssessmentFormProcessor:
    """Builds forms from pathway schemas and turns submissions into payloads.

    Args:
        builder: form builder (a fresh one by default)
        extractor: data extractor (a fresh one by default)
        section_defaults: payload values for sections the form never rendered
    """

    def __init__(
        self,
        builder: Optional[SchemaFormBuilder] = None,
        extractor: Optional[SchemaFormDataExtractor] = None,
        section_defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._builder = builder or SchemaFormBuilder()
        self._extractor = extractor or SchemaFormDataExtractor()
        self._section_defaults = dict(IGNORED_SECTION_DEFAULTS if section_defaults is None else section_defaults)

    def build_form(self, schema: Any, mode: Union[OperationMode, str] = DEFAULT_OPERATION_MODE) -> dict[str, Any]:
        """Build the form tree for *schema* in *mode*."""
        return self._builder.build(schema, mode)

    def extract_form_data(
        self,
        schema: Any,
        values: Mapping,
        mode: Union[OperationMode, str] = DEFAULT_OPERATION_MODE,
    ) -> dict[str, Any]:
        """Extract the schema-shaped data from submitted *values*."""
        return self._extractor.extract(schema, values, mode)

    def build_payload(
        self,
        schema: Any,
        values: Mapping,
        mode: Union[OperationMode, str] = DEFAULT_OPERATION_MODE,
    ) -> dict[str, Any]:
        """Extract *values* and inject defaults for omitted top-level sections.

        Only sections the extraction left out (pruned in basic mode and not
        submitted) are filled, and only when a default is known.  The result
        keeps the schema's declaration order.
        """
        root = parse_schema(schema)
        data = self._extractor.extract(root, values, mode)
        if not isinstance(root, PropertiesNode):
            return data

        payload: dict[str, Any] = {}
        for name in root.properties:
            if name in data:
                payload[name] = data[name]
            elif name in self._section_defaults:
                logger.debug("Injecting default payload for skipped section %s", name)
                payload[name] = copy.deepcopy(self._section_defaults[name])
        return payload
