"""Tests for modelroute.main — FastAPI app, middleware, exception handlers.

Covers: health endpoint, CORS headers, ModelRoutingError -> status mapping,
exception handlers (HTTPException, validation, unhandled), request logging.

Uses httpx.AsyncClient with ASGITransport (async test client). All tests use
explicit @pytest.mark.asyncio per strict mode.
"""

import logging

import httpx
import pytest
from fastapi import APIRouter
from httpx import ASGITransport
from pydantic import BaseModel

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
from modelroute.main import create_app, status_for


# ---------------------------------------------------------------------------
# Helper: a tiny router that raises on demand
# ---------------------------------------------------------------------------

_test_router = APIRouter(prefix="/api/v1/test")

_ERRORS = {
    "invalid": InvalidIdentifier("bad id", step="parse", hint="use provider/model"),
    "unknown": UnknownProvider("no such provider", step="provider_lookup"),
    "not-configured": ProviderNotConfigured("needs key", step="configuration"),
    "no-default": NoDefaultModel("nothing set", step="process_default"),
    "duplicate": DuplicateModel("exists", step="add_custom_model"),
    "not-found": ModelNotFound("absent", step="remove"),
    "catalog": CatalogUnavailable("down", step="catalog"),
    "base": ModelRoutingError("generic"),
}


@_test_router.get("/raise/{kind}")
async def raising_route(kind: str) -> dict:
    raise _ERRORS[kind]


class _BodyModel(BaseModel):
    name: str
    age: int


@_test_router.post("/validated")
async def validated_route(body: _BodyModel) -> dict:
    return {"name": body.name}


@_test_router.get("/explode")
async def exploding_route() -> dict:
    raise RuntimeError("Something went terribly wrong")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(make_settings, make_services) -> httpx.AsyncClient:
    """Async test client wired to an app with fake services."""
    settings = make_settings()
    app = create_app(settings, make_services(settings=settings))
    app.include_router(_test_router)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    """GET /api/v1/health."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/health")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_api_response(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/health")
        body = resp.json()
        assert body["ok"] is True
        assert body["data"]["status"] == "healthy"
        assert body["error"] is None

    @pytest.mark.asyncio
    async def test_health_reports_providers_and_default(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/health")
        data = resp.json()["data"]
        assert data["providers"] == 12
        assert data["process_default"] == "openrouter/qwen/qwen3-coder:free"


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


class TestCORS:
    """CORS middleware — allows configured origins, blocks others."""

    @pytest.mark.asyncio
    async def test_allowed_origin_gets_cors_header(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.options(
                "/api/v1/health",
                headers={
                    "Origin": "http://localhost:3000",
                    "Access-Control-Request-Method": "GET",
                },
            )
        assert resp.headers.get("access-control-allow-origin") == "http://localhost:3000"

    @pytest.mark.asyncio
    async def test_disallowed_origin_no_cors_header(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.options(
                "/api/v1/health",
                headers={
                    "Origin": "http://evil.example.com",
                    "Access-Control-Request-Method": "GET",
                },
            )
        assert "access-control-allow-origin" not in resp.headers


# ---------------------------------------------------------------------------
# Routing errors
# ---------------------------------------------------------------------------


class TestRoutingErrorHandler:
    """ModelRoutingError subclasses map to fixed HTTP statuses."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("kind", "status", "code"),
        [
            ("invalid", 400, "INVALID_IDENTIFIER"),
            ("unknown", 404, "UNKNOWN_PROVIDER"),
            ("not-configured", 409, "PROVIDER_NOT_CONFIGURED"),
            ("no-default", 409, "NO_DEFAULT_MODEL"),
            ("duplicate", 409, "DUPLICATE_MODEL"),
            ("not-found", 404, "MODEL_NOT_FOUND"),
            ("catalog", 503, "CATALOG_UNAVAILABLE"),
            ("base", 400, "MODEL_ROUTING_ERROR"),
        ],
    )
    async def test_status_and_code(
        self, client: httpx.AsyncClient, kind: str, status: int, code: str
    ) -> None:
        async with client:
            resp = await client.get(f"/api/v1/test/raise/{kind}")
        assert resp.status_code == status
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == code

    @pytest.mark.asyncio
    async def test_hint_included(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/test/raise/invalid")
        error = resp.json()["error"]
        assert error["message"] == "bad id"
        assert error["hint"] == "use provider/model"


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


class TestExceptionHandlers:
    """Global exception handling — consistent ApiResponse envelopes."""

    @pytest.mark.asyncio
    async def test_unhandled_exception_returns_500(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/test/explode")
        assert resp.status_code == 500
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert body["error"]["message"] == "An unexpected error occurred."

    @pytest.mark.asyncio
    async def test_unhandled_exception_no_traceback_in_body(
        self, client: httpx.AsyncClient
    ) -> None:
        async with client:
            resp = await client.get("/api/v1/test/explode")
        body_text = resp.text
        assert "RuntimeError" not in body_text
        assert "traceback" not in body_text.lower()
        assert "went terribly wrong" not in body_text

    @pytest.mark.asyncio
    async def test_validation_error_returns_422(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.post(
                "/api/v1/test/validated",
                json={"name": "test"},  # missing 'age' field
            )
        assert resp.status_code == 422
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_404_returns_api_response(self, client: httpx.AsyncClient) -> None:
        async with client:
            resp = await client.get("/api/v1/nonexistent")
        assert resp.status_code == 404
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "HTTP_ERROR"


# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------


class TestRequestLogging:
    """Request logging middleware — captures method, path, status, duration."""

    @pytest.mark.asyncio
    async def test_request_is_logged(
        self, client: httpx.AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="modelroute"):
            async with client:
                await client.get("/api/v1/health")

        log_messages = [r.message for r in caplog.records if r.name == "modelroute"]
        assert any("GET" in msg and "/api/v1/health" in msg and "200" in msg for msg in log_messages)

    @pytest.mark.asyncio
    async def test_log_includes_duration(
        self, client: httpx.AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="modelroute"):
            async with client:
                await client.get("/api/v1/health")

        log_messages = [r.message for r in caplog.records if r.name == "modelroute"]
        assert any("ms" in msg for msg in log_messages)

    @pytest.mark.asyncio
    async def test_request_body_not_logged(
        self, client: httpx.AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG):
            async with client:
                await client.post(
                    "/api/v1/models/custom",
                    json={"id": "groq/x", "api_key": "sk-very-secret"},
                )
        assert "sk-very-secret" not in caplog.text


class TestStatusFor:
    """status_for — subclasses inherit the status of the type they extend."""

    def test_subclass_of_mapped_error(self) -> None:
        class AliasNotFound(UnknownProvider):
            pass

        assert status_for(AliasNotFound("x")) == 404

    def test_unmapped_error_is_400(self) -> None:
        assert status_for(ModelRoutingError("x")) == 400
