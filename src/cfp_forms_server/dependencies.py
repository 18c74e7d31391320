"""FastAPI dependency injection — provides the processor and schema store.

Both are built once by the lifespan handler and stashed on ``app.state``.
"""

from fastapi import Request

from cfp_forms.processor import AssessmentFormProcessor
from cfp_forms.schema_store import SchemaStore


def get_processor(request: Request) -> AssessmentFormProcessor:
    """Return the processor singleton from ``app.state``."""
    return request.app.state.processor


def get_store(request: Request) -> SchemaStore:
    """Return the SchemaStore singleton from ``app.state``."""
    return request.app.state.store
