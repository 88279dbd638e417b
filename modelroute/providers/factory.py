"""Adapter construction — one adapter per registered provider.

Replaces lazily created per-provider singletons with explicit construction:
the caller builds the adapter map once and injects it wherever it is needed.
"""

from collections.abc import Mapping

import httpx

from modelroute.models import CatalogKind, ProviderDescriptor
from modelroute.providers.base import ProviderAdapter
from modelroute.providers.local import OllamaAdapter, OpenAICompatibleServerAdapter
from modelroute.providers.openrouter import OpenRouterAdapter
from modelroute.providers.registry import ProviderRegistry
from modelroute.providers.static import StaticCatalogAdapter


def create_adapter(
    descriptor: ProviderDescriptor,
    *,
    credential: str | None = None,
    base_url: str | None = None,
    env: Mapping[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderAdapter:
    """Routes a descriptor to the adapter family that serves it.

    Args:
        descriptor: The provider to build an adapter for.
        credential: Explicit credential override.
        base_url: Explicit base URL override.
        env: Environment mapping for credential/base-URL lookup.
        transport: httpx transport for network-bound adapters.

    Returns:
        A concrete ProviderAdapter.

    Raises:
        ValueError: If the descriptor's catalog kind/engine pair has no adapter.
    """
    overrides = {"credential": credential, "base_url": base_url, "env": env}

    if descriptor.catalog_kind is CatalogKind.STATIC:
        return StaticCatalogAdapter(descriptor, **overrides)

    if descriptor.catalog_kind is CatalogKind.DAEMON:
        if descriptor.engine == "ollama":
            return OllamaAdapter(descriptor, transport=transport, **overrides)
        return OpenAICompatibleServerAdapter(descriptor, transport=transport, **overrides)

    if descriptor.catalog_kind is CatalogKind.DYNAMIC and descriptor.engine == "openai":
        return OpenRouterAdapter(descriptor, transport=transport, **overrides)

    raise ValueError(
        f"No adapter for provider {descriptor.id!r} "
        f"(catalog_kind={descriptor.catalog_kind.value}, engine={descriptor.engine})"
    )


def build_adapters(
    registry: ProviderRegistry,
    *,
    env: Mapping[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, ProviderAdapter]:
    """Builds one adapter per registered provider, keyed by provider id.

    Iteration order of the result follows the registry's display order.
    """
    return {
        descriptor.id: create_adapter(descriptor, env=env, transport=transport)
        for descriptor in registry.all()
    }
