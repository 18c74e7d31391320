"""cfp_forms_server — FastAPI REST API for the assessment form SDK.

Exposes form building, submission extraction and payload assembly for the
pathway schemas held by a ``SchemaStore``, so that non-Python frontends can
render pathway forms.
"""
