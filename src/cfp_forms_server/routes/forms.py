"""Ad-hoc form endpoints — build and extract against a caller-supplied schema.

Used by frontends that fetched a pathway schema from the remote API
themselves and only need the form engine.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from cfp_forms.constants import DEFAULT_OPERATION_MODE, OperationMode
from cfp_forms.models.form import FormTree
from cfp_forms.processor import AssessmentFormProcessor

from cfp_forms_server.dependencies import get_processor

router = APIRouter(prefix="/forms", tags=["forms"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class BuildFormRequest(BaseModel):
    """Body for POST /forms/build."""
    model_config = ConfigDict(populate_by_name=True)

    json_schema: dict[str, Any] = Field(alias="schema")
    mode: OperationMode = DEFAULT_OPERATION_MODE


class ExtractRequest(BaseModel):
    """Body for POST /forms/extract."""
    model_config = ConfigDict(populate_by_name=True)

    json_schema: dict[str, Any] = Field(alias="schema")
    values: dict[str, Any] = {}
    mode: OperationMode = DEFAULT_OPERATION_MODE


class FormResponse(BaseModel):
    """A built form tree."""
    mode: OperationMode
    form: FormTree


class ExtractResponse(BaseModel):
    """Schema-shaped data extracted from a submission."""
    data: dict[str, Any]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/build")
def build_form(
    body: BuildFormRequest,
    processor: AssessmentFormProcessor = Depends(get_processor),
) -> FormResponse:
    """Build the form tree for the supplied schema."""
    form = processor.build_form(body.json_schema, body.mode)
    return FormResponse(mode=body.mode, form=form)


@router.post("/extract")
def extract_form_data(
    body: ExtractRequest,
    processor: AssessmentFormProcessor = Depends(get_processor),
) -> ExtractResponse:
    """Rebuild schema-shaped data from flat or nested submitted values."""
    data = processor.extract_form_data(body.json_schema, body.values, body.mode)
    return ExtractResponse(data=data)
