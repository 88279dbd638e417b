"""Base provider adapter — the uniform capability surface over every backend.

Three families implement it: static catalogs (hardcoded tables), dynamic
catalogs (remote listing endpoint) and local daemons (a process on this
machine). Callers never branch on the family; they ask:

- is_configured(): is the credential/base URL present? Instant, no I/O.
- is_available(): does the backend answer right now? Network-bound, never raises.
- get_models(): what does it advertise? Fails soft to an empty list.
- pull_model(): download a model into the daemon. Daemons only.

fetch_models() is the strict variant of get_models() — it raises
CatalogUnavailable so the catalog cache can tell "failed" from "empty".

Credential and base URL precedence: explicit constructor argument
(custom model override) -> environment variable named in the descriptor
-> descriptor default (base URL only).

Tier 2 — imports from modelroute.models and modelroute.errors (Tier 1).
"""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping

from modelroute.errors import CatalogUnavailable
from modelroute.models import CatalogKind, ProviderDescriptor, ProviderModel

logger = logging.getLogger(__name__)

# Receives one human-readable status line per progress update.
ProgressSink = Callable[[str], object]


class ProviderAdapter(ABC):
    """Abstract base for provider adapters.

    Args:
        descriptor: The provider's static description.
        credential: Explicit credential; overrides the environment.
        base_url: Explicit base URL; overrides environment and default.
        env: Environment mapping consulted for credential/base URL.
            Defaults to os.environ, read at call time.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        credential: str | None = None,
        base_url: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._credential = credential
        self._base_url = base_url
        self._env = env

    # -- Identity ---------------------------------------------------------

    @property
    def descriptor(self) -> ProviderDescriptor:
        return self._descriptor

    @property
    def provider_id(self) -> str:
        return self._descriptor.id

    @property
    def catalog_kind(self) -> CatalogKind:
        return self._descriptor.catalog_kind

    # -- Configuration ----------------------------------------------------

    def _environ(self) -> Mapping[str, str]:
        return os.environ if self._env is None else self._env

    @property
    def credential(self) -> str | None:
        """Explicit credential, else the descriptor's env var, else None."""
        if self._credential:
            return self._credential
        env_var = self._descriptor.credential_env_var
        if env_var:
            value = self._environ().get(env_var, "").strip()
            return value or None
        return None

    @property
    def base_url(self) -> str:
        """Explicit base URL, else the descriptor's env var, else the default."""
        if self._base_url:
            return self._base_url.rstrip("/")
        env_var = self._descriptor.base_url_env_var
        if env_var:
            value = self._environ().get(env_var, "").strip()
            if value:
                return value.rstrip("/")
        return self._descriptor.default_base_url.rstrip("/")

    def is_configured(self) -> bool:
        """True if everything needed to call the provider is present.

        Pure: no I/O. Providers without a credential env var (local
        daemons) are always configured — whether they are running is
        is_available()'s question.
        """
        if not self._descriptor.requires_credential:
            return True
        return self.credential is not None

    # -- Network-bound, best effort -----------------------------------------

    async def is_available(self) -> bool:
        """Whether the provider can be used right now.

        Remote providers answer from configuration alone. Daemon adapters
        override this with a bounded network probe.
        """
        return self.is_configured()

    @abstractmethod
    async def fetch_models(self) -> list[ProviderModel]:
        """Returns the provider's catalog.

        Raises:
            CatalogUnavailable: If the catalog could not be obtained.
        """

    async def get_models(self) -> list[ProviderModel]:
        """Returns the provider's catalog, or [] if it cannot be obtained.

        Listing is advisory: a failure here never blocks resolution of an
        identifier the user already spelled out.
        """
        try:
            return await self.fetch_models()
        except CatalogUnavailable as exc:
            logger.warning("Catalog for %s unavailable: %s", self.provider_id, exc.message)
            return []

    @property
    def supports_pull(self) -> bool:
        """Whether pull_model() can download anything."""
        return False

    async def pull_model(self, model_id: str, on_progress: ProgressSink | None = None) -> bool:
        """Downloads a model into a local daemon.

        Args:
            model_id: Model name as the daemon knows it (tag included).
            on_progress: Receives incremental status lines.

        Returns:
            True on completion, False on failure or if unsupported.
        """
        logger.info("Provider %s does not support pulling models", self.provider_id)
        return False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(provider_id={self.provider_id!r}, "
            f"base_url={self.base_url!r}, has_credential={self.credential is not None})"
        )
