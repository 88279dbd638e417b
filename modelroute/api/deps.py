"""Shared FastAPI dependencies — service injection for route handlers.

create_app() builds one ModelServices and stores it on app.state. Route
handlers reach it via FastAPI's Depends() system, never by importing a
module global, so tests can hand create_app() services wired to fakes.

Tier 2 service module: imports from services (Tier 2), hooks/interfaces
(Tier 1), schemas (Tier 1).

Usage:
    from modelroute.api.deps import get_resolver

    @router.post("/resolve")
    async def resolve(resolver: ModelResolver = Depends(get_resolver)): ...
"""

from fastapi import Depends, HTTPException, Request

from modelroute.hooks.interfaces import ModelStore
from modelroute.resolver import ModelResolver
from modelroute.schemas import ApiError, ApiResponse
from modelroute.services import ModelServices


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_services(request: Request) -> ModelServices:
    """Returns the ModelServices attached to the running app.

    Raises HTTPException(503) if the app was started without services.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=503,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="SERVICE_UNAVAILABLE",
                    message="Model services are not yet available. Server is starting up.",
                ),
            ).model_dump(),
        )
    return services


def get_store(services: ModelServices = Depends(get_services)) -> ModelStore:
    """Returns the model store."""
    return services.store


def get_resolver(services: ModelServices = Depends(get_services)) -> ModelResolver:
    """Returns the model resolver."""
    return services.resolver

