"""
FastAPI application factory.

Usage:
    python -m bearpaw serve                  # uvicorn on $PORT (default 8080)
    STORE_BACKEND=memory python -m bearpaw serve

OpenAPI docs are served at /docs.

Error mapping lives here and only here:
    ProjectionError   -> 503  (one source failed; no partial projection)
    NotFoundError     -> 404
    StorageError      -> 502  (store unreachable or write refused)
    ValidationError   -> 422  (merged PATCH with the wrong types)
"""

import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from bearpaw import __version__
from bearpaw.api.routes import build_collection_router, projections_router
from bearpaw.audit import configure_logging, get_logger
from bearpaw.config import get_settings
from bearpaw.models.items import Collection
from bearpaw.orchestrator import AppComponents, create_app_components
from bearpaw.projections import ProjectionError
from bearpaw.services.storage import NotFoundError, StorageError

logger = get_logger("bearpaw.api")


def _validation_errors(error: ValidationError) -> list[dict]:
    """Reduce pydantic errors to plain JSON (ctx may hold exception objects)."""
    return [
        {
            "loc": list(item.get("loc", ())),
            "msg": item.get("msg", ""),
            "type": item.get("type", ""),
        }
        for item in error.errors()
    ]


def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        components: Pre-wired components (tests pass a memory-backed set);
            built from settings when omitted
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    app = FastAPI(title="Bearpaw Cabin API", version=__version__)
    app.state.components = components or create_app_components(app_settings=app_settings)

    for collection in Collection:
        app.include_router(build_collection_router(collection))
    app.include_router(projections_router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    @app.exception_handler(ProjectionError)
    async def projection_error_handler(request: Request, exc: ProjectionError) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": _validation_errors(exc)})

    @app.get("/health")
    async def health() -> dict:
        """Liveness check; reports which store backend is wired."""
        return {"status": "ok", "store": app.state.components.store.backend_name}

    return app
