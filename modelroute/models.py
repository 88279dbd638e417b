"""Core value types for model resolution.

Frozen dataclasses shared by the parser, the provider adapters, the
catalog cache and the resolver. Persisted and API-facing types live in
modelroute.schemas instead.

Tier 1 leaf — no project imports.
"""

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Built-in defaults
# ---------------------------------------------------------------------------

# Used when no identifier is given, nothing is stored, MODELROUTE_MODEL is
# unset and the default-model policy is "builtin".
BUILTIN_FALLBACK_MODEL: str = "openrouter/qwen/qwen3-coder:free"

# Wire dialect assumed for providers that exist only as custom models.
CUSTOM_PROVIDER_ENGINE: str = "openai"


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModelReference:
    """A parsed ``provider/model[:tag]`` identifier.

    provider_id is non-empty and lowercase, model_id is non-empty. tag is
    None when the identifier carried no ``:`` suffix.
    """

    provider_id: str
    model_id: str
    tag: str | None = None

    @property
    def qualified_model(self) -> str:
        """The model name as a provider expects it, tag included."""
        if self.tag is None:
            return self.model_id
        return f"{self.model_id}:{self.tag}"


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class CatalogKind(str, Enum):
    """How a provider's model list is obtained."""

    STATIC = "static"    # hardcoded table
    DYNAMIC = "dynamic"  # fetched from a remote listing endpoint
    DAEMON = "daemon"    # queried from a locally running process


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static description of one known provider.

    Immutable for the process lifetime; owned by ProviderRegistry.
    """

    id: str
    display_name: str
    engine: str  # wire dialect: "openai", "anthropic", "ollama", "google"
    is_local: bool
    default_base_url: str
    catalog_kind: CatalogKind
    credential_env_var: str | None = None
    base_url_env_var: str | None = None

    @property
    def requires_credential(self) -> bool:
        return self.credential_env_var is not None


@dataclass(frozen=True)
class ProviderModel:
    """One model advertised by a provider."""

    id: str
    display_name: str
    provider_id: str
    context_length: int = 0  # 0 when the provider does not report it
    is_free: bool | None = None  # None = unknown
    size_on_disk: str | None = None


# ---------------------------------------------------------------------------
# Resolution output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedModelConfig:
    """The single ready-to-call configuration produced by ModelResolver.

    Built fresh per resolve() call. The credential never appears in repr()
    so a resolved config can be logged safely.

    source is one of "explicit", "stored_default", "process_default".
    catalog_miss is True when a dynamic catalog was consulted and did not
    list the model; the identifier is passed through regardless.
    engine is the wire dialect to speak to base_url (see ProviderDescriptor).
    """

    provider_id: str
    model_id: str
    base_url: str
    credential: str | None = field(default=None, repr=False)
    context_length: int | None = None
    source: str = "explicit"
    catalog_miss: bool = False
    warnings: tuple[str, ...] = ()
    engine: str = CUSTOM_PROVIDER_ENGINE

    @property
    def identifier(self) -> str:
        return f"{self.provider_id}/{self.model_id}"

    @property
    def has_credential(self) -> bool:
        return bool(self.credential)
