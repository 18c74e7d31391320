"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads pathway schemas and builds the processor once
  - CORS middleware
  - Global exception handlers (ValueError 400, KeyError 404)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``cfp-forms-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from cfp_forms.processor import AssessmentFormProcessor
from cfp_forms.schema_store import SchemaStore

from cfp_forms_server.config import ServerSettings, load_settings
from cfp_forms_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from cfp_forms_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan (startup/shutdown)
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup.

    Startup:
      1. Load pathway schemas into a ``SchemaStore``
      2. Build the ``AssessmentFormProcessor``
      3. Stash both on ``app.state`` for dependency injection
    """
    settings: ServerSettings = app.state.settings

    # --- Load schemas ---
    store = SchemaStore(schema_dir=settings.schema_dir)
    store.load()
    logger.info("SchemaStore loaded successfully")

    app.state.store = store
    app.state.processor = AssessmentFormProcessor()

    yield

    logger.info("Server shutting down")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="CFP Assessment Forms Server",
        description="REST API for building and extracting Cool Farm pathway forms",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health(request: Request) -> dict:
        """Readiness probe — reports how many pathway schemas are loaded."""
        store: SchemaStore | None = getattr(request.app.state, "store", None)
        if store is None:
            return {"status": "error", "detail": "schema store not loaded"}
        return {"status": "ok", "pathways": len(store)}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn cfp_forms_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``cfp-forms-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "cfp_forms_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
