"""Pathway endpoints — forms and payloads for the schemas held by the store.

Pathways are looked up by name; unknown names raise ``KeyError`` in the
store, which the global handler maps to 404.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from cfp_forms.constants import DEFAULT_OPERATION_MODE, OperationMode
from cfp_forms.models.form import FormTree
from cfp_forms.processor import AssessmentFormProcessor
from cfp_forms.schema_store import SchemaStore

from cfp_forms_server.dependencies import get_processor, get_store

router = APIRouter(prefix="/pathways", tags=["pathways"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class PathwaySummary(BaseModel):
    name: str
    title: str
    description: str | None = None


class PathwayFormResponse(BaseModel):
    """The form tree of one pathway."""
    pathway: str
    mode: OperationMode
    form: FormTree


class PayloadRequest(BaseModel):
    """Body for POST /pathways/{name}/payload."""
    values: dict[str, Any] = {}
    mode: OperationMode = DEFAULT_OPERATION_MODE


class PayloadResponse(BaseModel):
    """Request body ready for the remote assessment API."""
    pathway: str
    payload: dict[str, Any]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("")
def list_pathways(
    store: SchemaStore = Depends(get_store),
) -> list[PathwaySummary]:
    """Return every pathway the store knows, sorted by name."""
    return [PathwaySummary(**entry) for entry in store.list_pathways()]


@router.get("/{name}/schema")
def get_pathway_schema(
    name: str,
    store: SchemaStore = Depends(get_store),
) -> dict[str, Any]:
    """Return the raw schema document of a pathway."""
    return store.get_schema(name)


@router.get("/{name}/form")
def get_pathway_form(
    name: str,
    mode: OperationMode = Query(DEFAULT_OPERATION_MODE),
    store: SchemaStore = Depends(get_store),
    processor: AssessmentFormProcessor = Depends(get_processor),
) -> PathwayFormResponse:
    """Build the form tree of a pathway in the requested mode."""
    form = processor.build_form(store.get_schema(name), mode)
    return PathwayFormResponse(pathway=name, mode=mode, form=form)


@router.post("/{name}/payload")
def build_pathway_payload(
    name: str,
    body: PayloadRequest,
    store: SchemaStore = Depends(get_store),
    processor: AssessmentFormProcessor = Depends(get_processor),
) -> PayloadResponse:
    """Extract a submission and fill in defaults for skipped sections."""
    payload = processor.build_payload(store.get_schema(name), body.values, body.mode)
    return PayloadResponse(pathway=name, payload=payload)
