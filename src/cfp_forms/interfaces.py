"""Abstract interface for the remote Cool Farm assessment API.

The SDK ships no concrete HTTP client: transport, base URL and
authentication belong to the integrating application.  Implementations only
provide :meth:`AssessmentApi.request`; every endpoint helper is built on it.

Typical integration flow::

    api: AssessmentApi = MyHttpAssessmentApi(...)
    processor = AssessmentFormProcessor()

    schema = api.fetch_pathway_schema("paddy_rice")
    form = processor.build_form(schema, OperationMode.BASIC)
    # ... render form, collect the submitted values ...

    payload = processor.build_payload(schema, submitted, OperationMode.BASIC)
    result = api.calculate_assessment(payload)
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class AssessmentApi(ABC):
    """Interface for the assessment API.

    Every method returns the decoded JSON response, or ``None`` when the
    request failed.  Failures are reported through the return value, not by
    raising, so that callers can degrade gracefully.
    """

    @abstractmethod
    def request(self, method: str, path: str, body: Optional[Any] = None) -> Optional[Any]:
        """Send one request to the API.

        Parameters
        ----------
        method:
            HTTP method, e.g. ``"GET"`` or ``"POST"``.
        path:
            Endpoint path relative to the API base URL, starting with ``/``.
        body:
            JSON-serialisable request body, if any.

        Returns
        -------
        Any or None
            Decoded JSON response, or ``None`` on any failure (transport
            error, non-2xx status, missing credentials).
        """
        ...

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    def list_assessments(self) -> Optional[Any]:
        """GET /assessments — assessments owned by the current user."""
        return self.request("GET", "/assessments")

    def create_assessment(self, assessment: dict) -> Optional[Any]:
        """POST /assessment"""
        return self.request("POST", "/assessment", assessment)

    def create_and_run_assessment(self, assessment: dict) -> Optional[Any]:
        """POST /assessment/create-and-run"""
        return self.request("POST", "/assessment/create-and-run", assessment)

    def fetch_assessment(self, assessment_id: str) -> Optional[Any]:
        return self.request("GET", f"/assessment/{assessment_id}")

    def delete_assessment(self, assessment_id: str) -> Optional[Any]:
        return self.request("DELETE", f"/assessment/{assessment_id}")

    def create_or_edit_run(self, assessment_id: str, run: dict) -> Optional[Any]:
        """POST /assessment/{id}/run/create-or-edit"""
        return self.request("POST", f"/assessment/{assessment_id}/run/create-or-edit", run)

    def copy_assessment(self, assessment_id: str, new_name: str) -> Optional[Any]:
        """POST /assessment/{id}/copy — duplicate under *new_name*."""
        return self.request("POST", f"/assessment/{assessment_id}/copy", {"new_name": new_name})

    def calculate_assessment(self, assessment: dict) -> Optional[Any]:
        """POST /assessment/calculate — run without saving the result."""
        return self.request("POST", "/assessment/calculate", assessment)

    def fetch_run(self, run_id: str) -> Optional[Any]:
        return self.request("GET", f"/assessment/run/{run_id}")

    # ------------------------------------------------------------------
    # Pathways
    # ------------------------------------------------------------------

    def fetch_pathway_schema(self, pathway_name: str) -> Optional[Any]:
        """GET /assessment/pathway/{name}/schema — the JSON Schema a form is built from."""
        return self.request("GET", f"/assessment/pathway/{pathway_name}/schema")
