"""OpenRouter adapter — dynamic catalog fetched from the models endpoint.

One bearer-authenticated GET to ``{base_url}/models`` with a fixed
client-side timeout. Every failure (no credential, transport error, non-2xx,
malformed body) becomes CatalogUnavailable; get_models() turns that into [].
Callers that want caching go through ModelCatalogCache, never here directly.

Tier 2 — imports from base.py + httpx.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from modelroute.errors import CatalogUnavailable
from modelroute.models import ProviderDescriptor, ProviderModel
from modelroute.providers.base import ProviderAdapter

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 10.0  # seconds


def _is_free(item: dict[str, Any]) -> bool | None:
    """Free if both prices are zero or the id carries the ``:free`` variant."""
    if str(item.get("id", "")).endswith(":free"):
        return True
    pricing = item.get("pricing")
    if not isinstance(pricing, dict):
        return None
    prompt, completion = pricing.get("prompt"), pricing.get("completion")
    if prompt is None or completion is None:
        return None
    try:
        return float(prompt) == 0 and float(completion) == 0
    except (TypeError, ValueError):
        return None


def _to_model(item: dict[str, Any], provider_id: str) -> ProviderModel:
    context = item.get("context_length")
    return ProviderModel(
        id=item["id"],
        display_name=item.get("name") or item["id"],
        provider_id=provider_id,
        context_length=context if isinstance(context, int) else 0,
        is_free=_is_free(item),
    )


class OpenRouterAdapter(ProviderAdapter):
    """Dynamic-catalog adapter for OpenRouter.

    Args:
        descriptor: The provider's static description.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
        timeout: Client-side timeout for the listing request, in seconds.
        credential, base_url, env: See ProviderAdapter.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = _FETCH_TIMEOUT,
        credential: str | None = None,
        base_url: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(descriptor, credential=credential, base_url=base_url, env=env)
        self._transport = transport
        self._timeout = timeout

    async def fetch_models(self) -> list[ProviderModel]:
        """Fetches the full remote catalog.

        Raises:
            CatalogUnavailable: On a missing credential or any HTTP,
                timeout or decoding failure.
        """
        credential = self.credential
        if credential is None:
            raise CatalogUnavailable(
                f"No credential for {self.provider_id}; catalog not fetched.",
                step="catalog",
            )

        url = f"{self.base_url}/models"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.get(url, headers={"Authorization": f"Bearer {credential}"})
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as exc:
            raise CatalogUnavailable(
                f"Fetching {url} failed: {type(exc).__name__}", step="catalog"
            ) from exc
        except ValueError as exc:
            raise CatalogUnavailable(f"Malformed catalog body from {url}", step="catalog") from exc

        items = body.get("data") if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise CatalogUnavailable(f"Catalog body from {url} has no 'data' list", step="catalog")

        models = [
            _to_model(item, self.provider_id)
            for item in items
            if isinstance(item, dict) and isinstance(item.get("id"), str)
        ]
        logger.debug("Fetched %d models from %s", len(models), self.provider_id)
        return models
