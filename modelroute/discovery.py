"""Provider discovery — a combined, concurrent view of every provider.

probe_providers() runs one task per provider, each under its own timeout.
A slow or failing provider is reported unavailable without delaying or
failing the others. Results come back in the adapters' order (registry
display order when built by build_adapters).
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from modelroute.catalog import ModelCatalogCache
from modelroute.models import CatalogKind, ProviderModel
from modelroute.providers.base import ProviderAdapter

logger = logging.getLogger("modelroute.discovery")

DEFAULT_PROBE_TIMEOUT = 5.0  # seconds, per provider


@dataclass(frozen=True)
class ProviderStatus:
    """What one provider looks like right now."""

    provider_id: str
    display_name: str
    is_local: bool
    catalog_kind: CatalogKind
    configured: bool
    available: bool
    models: tuple[ProviderModel, ...] = ()
    error: str | None = None


async def _probe(
    adapter: ProviderAdapter,
    catalog: ModelCatalogCache | None,
    timeout_seconds: float,
    include_models: bool,
) -> ProviderStatus:
    descriptor = adapter.descriptor
    configured = adapter.is_configured()
    available = False
    models: list[ProviderModel] = []
    error = None
    try:
        async with asyncio.timeout(timeout_seconds):
            available = await adapter.is_available()
            if available and include_models:
                if catalog is not None and descriptor.catalog_kind is CatalogKind.DYNAMIC:
                    models = await catalog.get_models(adapter.provider_id)
                else:
                    models = await adapter.get_models()
    except TimeoutError:
        logger.warning("Probe of %s timed out after %.1fs", adapter.provider_id, timeout_seconds)
        available, models, error = False, [], "timeout"
    except Exception as exc:
        logger.warning("Probe of %s failed: %s", adapter.provider_id, type(exc).__name__)
        available, models, error = False, [], type(exc).__name__

    return ProviderStatus(
        provider_id=adapter.provider_id,
        display_name=descriptor.display_name,
        is_local=descriptor.is_local,
        catalog_kind=descriptor.catalog_kind,
        configured=configured,
        available=available,
        models=tuple(models),
        error=error,
    )


async def probe_providers(
    adapters: Mapping[str, ProviderAdapter],
    *,
    catalog: ModelCatalogCache | None = None,
    timeout_seconds: float = DEFAULT_PROBE_TIMEOUT,
    include_models: bool = True,
) -> list[ProviderStatus]:
    """Probes every provider concurrently.

    Args:
        adapters: Provider id -> adapter, in display order.
        catalog: When given, dynamic catalogs are listed through it.
        timeout_seconds: Budget for each provider's probe + listing.
        include_models: Also list models of available providers.

    Returns:
        One ProviderStatus per adapter, in input order.
    """
    return list(
        await asyncio.gather(
            *(
                _probe(adapter, catalog, timeout_seconds, include_models)
                for adapter in adapters.values()
            )
        )
    )
