"""FastAPI application — modelroute HTTP surface for IDE integrations.

create_app() assembles:
- /api/v1 routers: health, providers, models
- CORS (origins from settings)
- Access logging as raw ASGI, so SSE pull streams are never buffered
- Exception handlers that turn every failure into an ApiResponse envelope;
  ModelRoutingError subclasses get their own status codes (ERROR_STATUS)

Run with: uvicorn modelroute.main:app --reload

Tier 3 orchestration module: imports from config (Tier 2), services
(Tier 2), api/* (Tier 3), schemas and errors (Tier 1).
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from modelroute.config import Settings, get_settings
from modelroute.errors import (
    CatalogUnavailable,
    DuplicateModel,
    InvalidIdentifier,
    ModelNotFound,
    ModelRoutingError,
    NoDefaultModel,
    ProviderNotConfigured,
    UnknownProvider,
)
from modelroute.schemas import ApiError, ApiResponse
from modelroute.services import ModelServices, build_services

logger = logging.getLogger("modelroute")

# Error type -> HTTP status. Anything not listed maps to 400.
ERROR_STATUS: dict[type[ModelRoutingError], int] = {
    InvalidIdentifier: 400,
    UnknownProvider: 404,
    ModelNotFound: 404,
    ProviderNotConfigured: 409,
    NoDefaultModel: 409,
    DuplicateModel: 409,
    CatalogUnavailable: 503,
}


# ---------------------------------------------------------------------------
# Access logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """One log line per HTTP request: method, path, status, elapsed time.

    Only the path is logged, never the query string, headers or bodies;
    custom-model requests carry API keys. Server errors log at WARNING.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.monotonic()
        status = 0

        async def send_and_record(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, send_and_record)
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            level = logging.WARNING if status >= 500 or status == 0 else logging.INFO
            logger.log(
                level,
                "%s %s %d %.1fms",
                scope.get("method", "?"),
                scope.get("path", "?"),
                status,
                elapsed_ms,
            )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, hint: str = "") -> JSONResponse:
    """An ApiResponse error envelope with the given status."""
    body = ApiResponse(ok=False, error=ApiError(code=code, message=message, hint=hint))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def status_for(exc: ModelRoutingError) -> int:
    """HTTP status for a routing error; subclasses inherit their base's status."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 400


def _routing_error_response(request: Request, exc: ModelRoutingError) -> JSONResponse:
    status = status_for(exc)
    logger.info(
        "%s (%s) on %s %s: %s",
        exc.code,
        exc.step or "-",
        request.method,
        request.url.path,
        exc.message,
    )
    return _error(status, exc.code, exc.message, exc.hint)


def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Passes envelope-shaped details through; wraps anything else."""
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    return _error(exc.status_code, "HTTP_ERROR", str(exc.detail))


def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reports the first invalid field by location only.

    Submitted values are never echoed: a rejected body may hold an API key.
    """
    problems = exc.errors()
    if not problems:
        return _error(422, "VALIDATION_ERROR", "Request validation failed.")
    first = problems[0]
    where = ".".join(str(part) for part in first.get("loc", ()))
    what = first.get("msg", "invalid value")
    return _error(422, "VALIDATION_ERROR", f"{where}: {what}" if where else what)


def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "INTERNAL_ERROR", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    services: ModelServices | None = None,
) -> FastAPI:
    """Creates and configures the FastAPI application.

    Args:
        settings: Defaults to get_settings().
        services: Prebuilt services (tests). Defaults to build_services(settings).
    """
    settings = settings or get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="modelroute",
        description="Model resolution and provider routing",
        version="0.1.0",
    )
    application.state.services = services or build_services(settings)

    # Last added runs first: CORS answers preflights before anything is logged.
    application.add_middleware(RequestLoggingMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(ModelRoutingError, _routing_error_response)
    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    _register_routes(application)

    logger.info(
        "modelroute ready: %d providers, config dir %s, process default %s",
        len(application.state.services.registry),
        settings.config_dir,
        settings.process_default_model or "(none)",
    )
    return application


def _register_routes(application: FastAPI) -> None:
    from modelroute.api.models import router as models_router
    from modelroute.api.providers import router as providers_router

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        services: ModelServices = request.app.state.services
        return ApiResponse(
            ok=True,
            data={
                "status": "healthy",
                "providers": len(services.registry),
                "process_default": services.resolver.process_default,
            },
        ).model_dump()

    v1.include_router(providers_router, prefix="/providers", tags=["providers"])
    v1.include_router(models_router, prefix="/models", tags=["models"])
    application.include_router(v1)


app = create_app()
