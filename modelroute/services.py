"""Service wiring — builds the registry, adapters, store, cache and resolver.

One ModelServices per process (or per test). Everything is constructed
here explicitly and passed down; nothing below this module reaches for a
global. The API stores the instance on app.state; the CLI builds its own.

Usage:
    from modelroute.config import get_settings
    from modelroute.services import build_services

    services = build_services(get_settings())
    resolved = await services.resolver.resolve("ollama/qwen2.5-coder:7b")
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from modelroute.catalog import ModelCatalogCache
from modelroute.config import Settings
from modelroute.errors import InvalidIdentifier, ModelNotFound, UnknownProvider
from modelroute.hooks.interfaces import ModelStore
from modelroute.hooks.model_store import JsonFileModelStore
from modelroute.identifiers import format_identifier
from modelroute.models import CatalogKind, ProviderModel
from modelroute.providers.base import ProviderAdapter
from modelroute.providers.factory import build_adapters
from modelroute.providers.registry import ProviderRegistry
from modelroute.resolver import ModelResolver
from modelroute.schemas import CustomModelEntry

logger = logging.getLogger("modelroute.services")


@dataclass(frozen=True)
class ModelServices:
    """Everything the API routes and CLI commands need."""

    settings: Settings
    registry: ProviderRegistry
    adapters: Mapping[str, ProviderAdapter]
    store: ModelStore
    catalog: ModelCatalogCache
    resolver: ModelResolver

    # -- Providers ---------------------------------------------------------

    def adapter(self, provider_id: str) -> ProviderAdapter:
        """Returns the adapter for a provider id or alias.

        Raises:
            UnknownProvider: If no adapter is registered for it.
        """
        canonical = self.registry.resolve_alias(provider_id)
        adapter = self.adapters.get(canonical)
        if adapter is None:
            known = ", ".join(self.adapters)
            raise UnknownProvider(
                f"Unknown provider {provider_id!r}.",
                step="provider_lookup",
                hint=f"Use one of: {known}.",
            )
        return adapter

    async def list_models(self, provider_id: str) -> list[ProviderModel]:
        """Lists a provider's models; dynamic catalogs go through the cache."""
        adapter = self.adapter(provider_id)
        if adapter.catalog_kind is CatalogKind.DYNAMIC:
            return await self.catalog.get_models(adapter.provider_id)
        return await adapter.get_models()

    # -- Custom models and default ------------------------------------------

    async def _canonical_id(self, model_id: str) -> str:
        """Parses model_id the way resolve() does and returns it with aliases resolved."""
        ref = self.resolver.canonicalize(await self.resolver.parse(model_id))
        return format_identifier(ref)

    async def add_custom_model(
        self,
        model_id: str,
        *,
        name: str | None = None,
        provider: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ) -> CustomModelEntry:
        """Validates and stores a custom model.

        The id is parsed the way resolve() parses it and stored in canonical
        ``provider/model[:tag]`` form, provider aliases resolved. provider
        defaults to the id's provider; when it names a different one, the
        model is routed through that provider.

        Raises:
            InvalidIdentifier: If model_id does not parse.
            DuplicateModel: If the id is already stored.
        """
        full_id = await self._canonical_id(model_id)
        provider_id = self.registry.resolve_alias(provider or full_id.split("/", 1)[0])
        entry = CustomModelEntry(
            id=full_id,
            display_name=name or full_id,
            provider_id=provider_id,
            base_url=base_url or None,
            credential=api_key or None,
        )
        await self.store.add_custom_model(entry)
        logger.info("Added custom model %s (provider=%s)", entry.id, entry.provider_id)
        return entry

    async def remove_custom_model(self, model_id: str) -> None:
        """Removes a custom model, by its stored id or an aliased spelling of it.

        Raises:
            ModelNotFound: If no custom model has that id.
        """
        model_id = model_id.strip()
        if await self.store.remove_custom_model(model_id):
            logger.info("Removed custom model %s", model_id)
            return
        try:
            canonical = await self._canonical_id(model_id)
        except InvalidIdentifier:
            canonical = model_id
        if canonical == model_id or not await self.store.remove_custom_model(canonical):
            raise ModelNotFound(
                f"No custom model {model_id!r}.",
                step="remove",
                hint="List custom models to see the stored ids.",
            )
        logger.info("Removed custom model %s", canonical)

    async def set_default(self, model_id: str) -> str:
        """Validates, canonicalises and stores the default model.

        Returns:
            The identifier as stored.

        Raises:
            InvalidIdentifier: If model_id does not parse.
        """
        full_id = await self._canonical_id(model_id)
        await self.store.set_default(full_id)
        logger.info("Default model set to %s", full_id)
        return full_id


def build_services(
    settings: Settings,
    *,
    store: ModelStore | None = None,
    registry: ProviderRegistry | None = None,
    adapters: Mapping[str, ProviderAdapter] | None = None,
    env: Mapping[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ModelServices:
    """Wires the model-resolution services together.

    Args:
        settings: Application settings.
        store: Model store. Defaults to a JSON store in settings.config_dir.
        registry: Provider registry. Defaults to the built-in providers.
        adapters: Prebuilt adapters (tests). Defaults to build_adapters().
        env: Environment mapping for adapters. Defaults to os.environ.
        transport: httpx transport for network-bound adapters.

    Returns:
        A ready ModelServices.
    """
    registry = registry or ProviderRegistry()
    if adapters is None:
        adapters = build_adapters(registry, env=env, transport=transport)
    store = store or JsonFileModelStore(settings.config_dir)

    dynamic = {
        provider_id: adapter
        for provider_id, adapter in adapters.items()
        if adapter.catalog_kind is CatalogKind.DYNAMIC
    }
    catalog = ModelCatalogCache(dynamic, ttl_seconds=settings.catalog_ttl_seconds)

    resolver = ModelResolver(
        registry,
        adapters,
        store,
        catalog,
        process_default=settings.process_default_model,
    )
    return ModelServices(
        settings=settings,
        registry=registry,
        adapters=adapters,
        store=store,
        catalog=catalog,
        resolver=resolver,
    )
