"""Provider routes — discovery, model listings and daemon pulls.

- GET  /providers                      concurrent availability probe
- GET  /providers/{provider_id}/models catalog of one provider
- POST /providers/{provider_id}/pull   SSE stream of pull progress

Provider ids accept aliases ("claude", "gem", ...). Unknown providers
are a 404 via the ModelRoutingError handler in main.py.

Tier 3 orchestration module: imports from deps (Tier 2), discovery and
streaming (Tier 2), schemas (Tier 1).
"""

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from starlette.responses import StreamingResponse

from modelroute.api.deps import get_services
from modelroute.discovery import ProviderStatus, probe_providers
from modelroute.models import ProviderModel
from modelroute.schemas import ApiError, ApiResponse, PullRequest
from modelroute.services import ModelServices
from modelroute.streaming import create_sse_response, stream_pull_progress

logger = logging.getLogger(__name__)

router = APIRouter()


def model_view(model: ProviderModel) -> dict[str, Any]:
    """JSON-ready view of a ProviderModel."""
    return asdict(model)


def status_view(status: ProviderStatus) -> dict[str, Any]:
    """JSON-ready view of a ProviderStatus."""
    view = asdict(status)
    view["catalog_kind"] = status.catalog_kind.value
    view["models"] = [model_view(m) for m in status.models]
    return view


@router.get("")
async def list_providers(
    models: bool = False,
    services: ModelServices = Depends(get_services),
) -> dict[str, Any]:
    """Probes every provider concurrently. ?models=true also lists catalogs."""
    statuses = await probe_providers(
        services.adapters,
        catalog=services.catalog,
        timeout_seconds=services.settings.probe_timeout_seconds,
        include_models=models,
    )
    return ApiResponse(
        ok=True,
        data={"providers": [status_view(s) for s in statuses]},
    ).model_dump(mode="json")


@router.get("/{provider_id}/models")
async def list_provider_models(
    provider_id: str,
    services: ModelServices = Depends(get_services),
) -> dict[str, Any]:
    """Lists one provider's models. An unreachable catalog is an empty list."""
    adapter = services.adapter(provider_id)
    models = await services.list_models(adapter.provider_id)
    return ApiResponse(
        ok=True,
        data={"provider": adapter.provider_id, "models": [model_view(m) for m in models]},
    ).model_dump(mode="json")


@router.post("/{provider_id}/pull")
async def pull_model(
    provider_id: str,
    body: PullRequest,
    services: ModelServices = Depends(get_services),
) -> StreamingResponse:
    """Streams a daemon pull as SSE: progress* then done or error.

    Raises:
        HTTPException: 400 if the provider cannot pull models.
    """
    adapter = services.adapter(provider_id)
    if not adapter.supports_pull:
        raise HTTPException(
            status_code=400,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="PULL_UNSUPPORTED",
                    message=f"Provider {adapter.provider_id!r} cannot pull models.",
                    hint="Only local daemons such as ollama support pulling.",
                ),
            ).model_dump(),
        )
    logger.info("Starting pull of %s via %s", body.model, adapter.provider_id)
    return create_sse_response(stream_pull_progress(adapter, body.model))
