"""Time-boxed cache over provider catalogs, with single-flight fetching.

ModelCatalogCache.get_models() never raises:

- fresh entry (younger than ttl)             -> cached models
- stale or missing                           -> fetch via adapter.fetch_models()
- fetch failed, entry within ttl + grace     -> last good models
- fetch failed, nothing usable               -> []

Concurrent callers for the same provider share one in-flight fetch task
rather than each hitting the network. The cache is bound to the event loop
its first fetch runs on; one cache per loop.

Usage:
    cache = ModelCatalogCache(adapters, ttl_seconds=600)
    models = await cache.get_models("openrouter")
"""

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from modelroute.errors import CatalogUnavailable
from modelroute.models import ProviderModel
from modelroute.providers.base import ProviderAdapter

logger = logging.getLogger("modelroute.catalog")

DEFAULT_TTL_SECONDS = 600.0
DEFAULT_GRACE_SECONDS = 3600.0


@dataclass(frozen=True)
class _CacheEntry:
    models: tuple[ProviderModel, ...]
    fetched_at: float


class ModelCatalogCache:
    """TTL cache keyed by provider id.

    Args:
        adapters: Provider id -> adapter. Usually only dynamic catalogs are
            routed through the cache, but any adapter works.
        ttl_seconds: How long a successful fetch is served without refetching.
        grace_seconds: How long past the TTL a stale entry may still be
            served when a refetch fails.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        adapters: Mapping[str, ProviderAdapter],
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._adapters = adapters
        self._ttl = ttl_seconds
        self._grace = grace_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._inflight: dict[str, asyncio.Task[list[ProviderModel]]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    async def get_models(self, provider_id: str) -> list[ProviderModel]:
        """Returns the provider's catalog, fetching at most once per TTL window.

        Args:
            provider_id: Provider to list.

        Returns:
            The models, possibly stale within the grace period, or [].
        """
        adapter = self._adapters.get(provider_id)
        if adapter is None:
            logger.warning("No adapter for provider %r; empty catalog", provider_id)
            return []

        entry = self._entries.get(provider_id)
        if entry is not None and self._clock() - entry.fetched_at < self._ttl:
            return list(entry.models)

        task = self._inflight.get(provider_id)
        if task is None:
            task = asyncio.ensure_future(self._refresh(provider_id, adapter))
            self._inflight[provider_id] = task
        # shield: one waiter being cancelled must not cancel the shared fetch
        return list(await asyncio.shield(task))

    def cached(self, provider_id: str) -> list[ProviderModel] | None:
        """Returns whatever is cached regardless of age, without fetching."""
        entry = self._entries.get(provider_id)
        return None if entry is None else list(entry.models)

    def invalidate(self, provider_id: str | None = None) -> None:
        """Drops one provider's entry, or every entry when provider_id is None."""
        if provider_id is None:
            self._entries.clear()
        else:
            self._entries.pop(provider_id, None)

    async def _refresh(self, provider_id: str, adapter: ProviderAdapter) -> list[ProviderModel]:
        try:
            models = await adapter.fetch_models()
        except CatalogUnavailable as exc:
            logger.warning("Catalog fetch for %s failed: %s", provider_id, exc.message)
            return self._fallback(provider_id)
        except Exception:
            logger.exception("Unexpected error fetching catalog for %s", provider_id)
            return self._fallback(provider_id)
        finally:
            self._inflight.pop(provider_id, None)

        self._entries[provider_id] = _CacheEntry(models=tuple(models), fetched_at=self._clock())
        logger.debug("Cached %d models for %s", len(models), provider_id)
        return list(models)

    def _fallback(self, provider_id: str) -> list[ProviderModel]:
        entry = self._entries.get(provider_id)
        if entry is None:
            return []
        age = self._clock() - entry.fetched_at
        if age <= self._ttl + self._grace:
            logger.info("Serving stale catalog for %s (age %.0fs)", provider_id, age)
            return list(entry.models)
        return []
