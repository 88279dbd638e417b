"""Fake provider adapter for testing and development.

Deterministic, network-free ProviderAdapter that serves a configurable
model list. Used by:
- The catalog cache, resolver, discovery and API tests (via conftest)
- Running the API without any backend reachable
- Reference implementation of the ProviderAdapter contract

Tier 2 service — imports only from base.py and Tier 1 modules.
"""

import asyncio
from collections.abc import Mapping

from modelroute.errors import CatalogUnavailable
from modelroute.models import CatalogKind, ProviderDescriptor, ProviderModel
from modelroute.providers.base import ProgressSink, ProviderAdapter

_FAKE_DESCRIPTOR = ProviderDescriptor(
    id="fake",
    display_name="Fake Provider",
    engine="openai",
    is_local=False,
    default_base_url="http://fake.invalid/v1",
    catalog_kind=CatalogKind.DYNAMIC,
    credential_env_var="FAKE_API_KEY",
)


class FakeProviderAdapter(ProviderAdapter):
    """Adapter with canned behaviour.

    Args:
        descriptor: Defaults to a dynamic-catalog "fake" provider.
        models: Models returned by fetch_models(). Defaults to none.
        error: If set, fetch_models() raises this (CatalogUnavailable
            is the realistic choice).
        available: What is_available() reports. Defaults to is_configured().
        delay: Seconds fetch_models()/is_available() sleep first, for
            concurrency and timeout tests.
        pull_events: Status lines pull_model() emits before returning True.
        credential, base_url, env: See ProviderAdapter. env defaults to an
            empty mapping so the real environment never leaks in.

    Attributes:
        fetch_calls: Number of fetch_models() invocations.
        pulled: Model ids passed to pull_model().
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor = _FAKE_DESCRIPTOR,
        *,
        models: list[ProviderModel] | None = None,
        error: Exception | None = None,
        available: bool | None = None,
        delay: float = 0.0,
        pull_events: list[str] | None = None,
        credential: str | None = None,
        base_url: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            descriptor,
            credential=credential,
            base_url=base_url,
            env={} if env is None else env,
        )
        self.models = list(models or [])
        self.error = error
        self.available = available
        self.delay = delay
        self.pull_events = pull_events
        self.fetch_calls = 0
        self.pulled: list[str] = []

    async def is_available(self) -> bool:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.available is None:
            return self.is_configured()
        return self.available

    async def fetch_models(self) -> list[ProviderModel]:
        """Returns the configured models, or raises the configured error."""
        self.fetch_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.models)

    @property
    def supports_pull(self) -> bool:
        return self.pull_events is not None

    async def pull_model(self, model_id: str, on_progress: ProgressSink | None = None) -> bool:
        """Emits canned status lines; unsupported when pull_events is None."""
        if self.pull_events is None:
            return False
        self.pulled.append(model_id)
        for status in self.pull_events:
            if on_progress is not None:
                on_progress(status)
            await asyncio.sleep(0)
        return True


def failing_catalog(message: str = "catalog down") -> CatalogUnavailable:
    """Convenience error for FakeProviderAdapter(error=...)."""
    return CatalogUnavailable(message, step="catalog")
