"""Shared test fixtures for modelroute.

Factory-pattern fixtures that return callables accepting **overrides.
Every test module imports its scaffolding from here.

Fixtures:
    make_model: Factory for ProviderModel instances
    make_entry: Factory for CustomModelEntry instances
    fake_adapter: Factory for FakeProviderAdapter instances
    make_settings: Factory for Settings pointing at a temp config dir
    make_resolver: Factory for a ModelResolver over the built-in registry
        with an injected environment and an in-memory store
    make_services: Factory for ModelServices with network-bound adapters
        replaced by fakes (for API and CLI tests)
"""

from collections.abc import Mapping
from pathlib import Path

import pytest

from modelroute.catalog import ModelCatalogCache
from modelroute.config import POLICY_BUILTIN, Settings
from modelroute.hooks.interfaces import ModelStore
from modelroute.hooks.model_store import InMemoryModelStore
from modelroute.models import CatalogKind, ProviderModel
from modelroute.providers.base import ProviderAdapter
from modelroute.providers.factory import build_adapters
from modelroute.providers.mock import FakeProviderAdapter
from modelroute.providers.registry import ProviderRegistry
from modelroute.resolver import ModelResolver
from modelroute.schemas import CustomModelEntry
from modelroute.services import ModelServices, build_services


# ---------------------------------------------------------------------------
# ProviderModel / CustomModelEntry factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_model():
    """Returns a factory for ProviderModel instances.

    The first positional argument is the model id; provider defaults to "fake".
    """

    def _make(model_id: str = "fake-model", **overrides) -> ProviderModel:
        defaults = {
            "id": model_id,
            "display_name": model_id,
            "provider_id": "fake",
            "context_length": 8192,
        }
        defaults.update(overrides)
        return ProviderModel(**defaults)

    return _make


@pytest.fixture
def make_entry():
    """Returns a factory for CustomModelEntry instances.

    provider defaults to the segment before the first "/" of the id.
    """

    def _make(model_id: str = "myhost/llama-70b", **overrides) -> CustomModelEntry:
        defaults = {
            "id": model_id,
            "display_name": model_id,
            "provider_id": model_id.partition("/")[0],
        }
        defaults.update(overrides)
        return CustomModelEntry(**defaults)

    return _make


# ---------------------------------------------------------------------------
# FakeProviderAdapter factory
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_adapter():
    """Returns a factory for FakeProviderAdapter instances."""

    def _make(**kwargs) -> FakeProviderAdapter:
        return FakeProviderAdapter(**kwargs)

    return _make


# ---------------------------------------------------------------------------
# Settings factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_settings(tmp_path: Path):
    """Returns a factory for Settings with config_dir under tmp_path."""

    def _make(**overrides) -> Settings:
        defaults = {
            "app_env": "test",
            "app_port": 8000,
            "log_level": "info",
            "cors_origins": ["http://localhost:3000"],
            "config_dir": tmp_path / "config",
            "env_model": None,
            "default_model_policy": POLICY_BUILTIN,
            "catalog_ttl_seconds": 600.0,
            "probe_timeout_seconds": 1.0,
        }
        defaults.update(overrides)
        return Settings(**defaults)

    return _make


# ---------------------------------------------------------------------------
# Resolver factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_resolver():
    """Returns a factory for ModelResolver over the built-in registry.

    Adapters are built from ``env`` (never os.environ). The network-bound
    OpenRouter adapter is replaced with a FakeProviderAdapter serving
    ``openrouter_models`` unless ``adapters`` overrides it.

    Keyword args:
        env: Environment mapping for credentials/base URLs.
        store: ModelStore. Defaults to an empty InMemoryModelStore.
        process_default: Process default identifier. Defaults to None.
        openrouter_models: Catalog served by the fake OpenRouter adapter.
        adapters: Extra adapters merged over the built ones.
        validate_catalog: Passed through to ModelResolver.
    """

    def _make(
        *,
        env: Mapping[str, str] | None = None,
        store: ModelStore | None = None,
        process_default: str | None = None,
        openrouter_models: list[ProviderModel] | None = None,
        adapters: Mapping[str, ProviderAdapter] | None = None,
        validate_catalog: bool = True,
    ) -> ModelResolver:
        env = dict(env or {})
        registry = ProviderRegistry()
        built = build_adapters(registry, env=env)
        built["openrouter"] = FakeProviderAdapter(
            registry.get("openrouter"),
            models=openrouter_models or [],
            env=env,
        )
        built.update(adapters or {})
        dynamic = {
            pid: adapter
            for pid, adapter in built.items()
            if adapter.catalog_kind is CatalogKind.DYNAMIC
        }
        return ModelResolver(
            registry,
            built,
            store if store is not None else InMemoryModelStore(),
            ModelCatalogCache(dynamic),
            process_default=process_default,
            validate_catalog=validate_catalog,
        )

    return _make


# ---------------------------------------------------------------------------
# ModelServices factory
# ---------------------------------------------------------------------------

PULL_EVENTS = ["pulling manifest", "downloading 50%", "success"]


@pytest.fixture
def make_services(make_settings):
    """Returns a factory for ModelServices that never touches the network.

    Static-catalog providers keep their real adapters (no I/O). Daemon and
    dynamic-catalog providers get FakeProviderAdapters; the ollama fake
    supports pulling and emits PULL_EVENTS.

    Keyword args:
        settings: Defaults to make_settings().
        store: Defaults to an empty InMemoryModelStore.
        env: Environment mapping for credentials/base URLs.
        models: Provider id -> models served by that provider's fake.
        adapters: Extra adapters merged over the defaults.
    """

    def _make(
        *,
        settings: Settings | None = None,
        store: ModelStore | None = None,
        env: Mapping[str, str] | None = None,
        models: Mapping[str, list[ProviderModel]] | None = None,
        adapters: Mapping[str, ProviderAdapter] | None = None,
    ) -> ModelServices:
        env = dict(env or {})
        models = dict(models or {})
        registry = ProviderRegistry()
        built = build_adapters(registry, env=env)
        for descriptor in registry.all():
            if descriptor.catalog_kind is CatalogKind.STATIC:
                continue
            built[descriptor.id] = FakeProviderAdapter(
                descriptor,
                models=models.get(descriptor.id, []),
                pull_events=list(PULL_EVENTS) if descriptor.id == "ollama" else None,
                env=env,
            )
        built.update(adapters or {})
        return build_services(
            settings or make_settings(),
            store=store if store is not None else InMemoryModelStore(),
            registry=registry,
            adapters=built,
        )

    return _make
