"""Model routes — custom models, the default model and resolution.

- GET    /models/custom          list custom models
- POST   /models/custom          add one (409 on duplicate id)
- DELETE /models/custom/{id}     remove one (404 if absent); ids contain "/"
- GET    /models/default         stored default plus the effective default
- PUT    /models/default         validate and store a default
- POST   /models/resolve         resolve an identifier (or the default)

Credentials are write-only: responses report has_credential, never the
value itself.

Tier 3 orchestration module: imports from deps (Tier 2), services (Tier 2),
schemas (Tier 1).
"""

from typing import Any

from fastapi import APIRouter, Depends

from modelroute.api.deps import get_resolver, get_services, get_store
from modelroute.errors import NoDefaultModel
from modelroute.hooks.interfaces import ModelStore
from modelroute.identifiers import format_identifier
from modelroute.models import ResolvedModelConfig
from modelroute.resolver import ModelResolver
from modelroute.schemas import (
    AddCustomModelRequest,
    ApiResponse,
    CustomModelEntry,
    ResolveRequest,
    SetDefaultRequest,
)
from modelroute.services import ModelServices


router = APIRouter()


def custom_model_view(entry: CustomModelEntry) -> dict[str, Any]:
    """JSON-ready view of a custom model without its credential."""
    return {
        "id": entry.id,
        "name": entry.display_name,
        "provider": entry.provider_id,
        "base_url": entry.base_url,
        "has_credential": bool(entry.credential),
    }


def resolved_view(resolved: ResolvedModelConfig) -> dict[str, Any]:
    """JSON-ready view of a ResolvedModelConfig without its credential."""
    return {
        "identifier": resolved.identifier,
        "provider_id": resolved.provider_id,
        "model_id": resolved.model_id,
        "engine": resolved.engine,
        "base_url": resolved.base_url,
        "has_credential": resolved.has_credential,
        "context_length": resolved.context_length,
        "source": resolved.source,
        "catalog_miss": resolved.catalog_miss,
        "warnings": list(resolved.warnings),
    }


# ---------------------------------------------------------------------------
# Custom models
# ---------------------------------------------------------------------------


@router.get("/custom")
async def list_custom_models(
    store: ModelStore = Depends(get_store),
) -> dict[str, Any]:
    """Lists custom models in insertion order."""
    entries = await store.list_custom_models()
    return ApiResponse(
        ok=True,
        data={"models": [custom_model_view(e) for e in entries]},
    ).model_dump(mode="json")


@router.post("/custom", status_code=201)
async def add_custom_model(
    body: AddCustomModelRequest,
    services: ModelServices = Depends(get_services),
) -> dict[str, Any]:
    """Adds a custom model. DuplicateModel becomes a 409."""
    entry = await services.add_custom_model(
        body.id,
        name=body.name,
        provider=body.provider,
        base_url=body.base_url,
        api_key=body.api_key,
    )
    return ApiResponse(ok=True, data=custom_model_view(entry)).model_dump(mode="json")


@router.delete("/custom/{model_id:path}")
async def remove_custom_model(
    model_id: str,
    services: ModelServices = Depends(get_services),
) -> dict[str, Any]:
    """Removes a custom model. ModelNotFound becomes a 404."""
    await services.remove_custom_model(model_id)
    return ApiResponse(ok=True, data={"removed": model_id}).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Default model
# ---------------------------------------------------------------------------


@router.get("/default")
async def get_default_model(
    services: ModelServices = Depends(get_services),
) -> dict[str, Any]:
    """Returns the stored default and what resolve(None) would pick.

    effective is None when nothing is stored and there is no process
    default. An invalid stored default surfaces as INVALID_IDENTIFIER.
    """
    stored = await services.store.get_default()
    try:
        ref, source = await services.resolver.default_reference()
    except NoDefaultModel:
        effective, source = None, None
    else:
        effective = format_identifier(ref)
    return ApiResponse(
        ok=True,
        data={"stored": stored, "effective": effective, "source": source},
    ).model_dump(mode="json")


@router.put("/default")
async def set_default_model(
    body: SetDefaultRequest,
    services: ModelServices = Depends(get_services),
) -> dict[str, Any]:
    """Stores a new default. Invalid identifiers are rejected with 400."""
    stored = await services.set_default(body.model)
    return ApiResponse(ok=True, data={"stored": stored}).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


@router.post("/resolve")
async def resolve_model(
    body: ResolveRequest,
    resolver: ModelResolver = Depends(get_resolver),
) -> dict[str, Any]:
    """Resolves body.model (or the default) to a ready-to-call configuration."""
    resolved = await resolver.resolve(body.model)
    return ApiResponse(ok=True, data=resolved_view(resolved)).model_dump(mode="json")
