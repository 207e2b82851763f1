"""FastAPI application factory for podplacement.

Usage::

    from podplacement.api.app import create_app

    app = create_app(analyzer=analyzer, config=config)

The factory is used by both the production bootstrap (``podplacement.app``)
and unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from podplacement.api.routes import router
from podplacement.api.schemas import ErrorResponse
from podplacement.errors import DecodeError, EncodeError, PodPlacementError, RecordValidationError

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"

# Most specific class first; PodPlacementError itself is the fallback.
_DOMAIN_ERRORS: tuple[tuple[type[PodPlacementError], int, str], ...] = (
    (DecodeError, 400, "INVALID_SNAPSHOT"),
    (RecordValidationError, 400, "INVALID_RECORD"),
    (EncodeError, 500, "SNAPSHOT_ENCODE_FAILED"),
    (PodPlacementError, 500, "ANALYSIS_FAILED"),
)


def create_app(analyzer: Any, config: Any = None) -> FastAPI:
    """Create and configure the podplacement FastAPI application.

    Args:
        analyzer: DisplacementAnalyzer instance backing every route.
        config:   PodPlacementConfig. Supplies the default minimum chain length.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from podplacement import __version__

    min_chain_length = 1
    if config is not None and hasattr(config, "analyzer"):
        min_chain_length = config.analyzer.min_chain_length

    app = FastAPI(
        title="Pod Placement Analyzer",
        summary="Pod displacement chains per owning controller",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.analyzer = analyzer
    app.state.config = config
    app.state.min_chain_length = min_chain_length

    app.include_router(router, prefix=_API_PREFIX)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Map Pydantic validation errors to our error envelope."""
        errors = exc.errors()
        first_field = ""
        first_msg = ""
        if errors:
            locs = errors[0].get("loc", ())
            first_field = str(locs[-1]) if locs else ""
            first_msg = str(errors[0].get("msg", ""))

        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="INVALID_PARAMETER",
                detail=f"{first_field}: {first_msg}" if first_field else first_msg,
            ).model_dump(),
        )

    @app.exception_handler(PodPlacementError)
    async def domain_exception_handler(
        request: Request,
        exc: PodPlacementError,
    ) -> JSONResponse:
        """Map analyzer errors to their status code and error code."""
        status_code, error = next((s, e) for cls, s, e in _DOMAIN_ERRORS if isinstance(exc, cls))
        _log.warning("request_rejected", path=str(request.url.path), error=error, detail=str(exc))
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=error, detail=str(exc)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
