"""Provider registry — the fixed table of known providers.

Single source of truth for provider ids, display names, credential and
base-URL environment variables, and how each provider's catalog is obtained.
Constructed once at startup and injected; no module-level instance.

To add a provider: append a ProviderDescriptor to BUILTIN_PROVIDERS and,
for static catalogs, a table in modelroute.providers.static.

Tier 1 leaf — imports only modelroute.models.
"""

from collections.abc import Iterable, Iterator, Mapping

from modelroute.models import CatalogKind, ProviderDescriptor

# ---------------------------------------------------------------------------
# Built-in providers (display order)
# ---------------------------------------------------------------------------

BUILTIN_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    # --- Local daemons ---
    ProviderDescriptor(
        id="ollama",
        display_name="Ollama (Local)",
        engine="ollama",
        is_local=True,
        default_base_url="http://localhost:11434",
        catalog_kind=CatalogKind.DAEMON,
        base_url_env_var="OLLAMA_BASE_URL",
    ),
    ProviderDescriptor(
        id="lmstudio",
        display_name="LM Studio (Local)",
        engine="openai",
        is_local=True,
        default_base_url="http://localhost:1234/v1",
        catalog_kind=CatalogKind.DAEMON,
        base_url_env_var="LMSTUDIO_BASE_URL",
    ),
    ProviderDescriptor(
        id="llamacpp",
        display_name="llama.cpp (Local)",
        engine="openai",
        is_local=True,
        default_base_url="http://localhost:8080/v1",
        catalog_kind=CatalogKind.DAEMON,
        base_url_env_var="LLAMACPP_BASE_URL",
    ),
    # --- Cloud ---
    ProviderDescriptor(
        id="anthropic",
        display_name="Anthropic",
        engine="anthropic",
        is_local=False,
        default_base_url="https://api.anthropic.com",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="ANTHROPIC_API_KEY",
        base_url_env_var="ANTHROPIC_BASE_URL",
    ),
    ProviderDescriptor(
        id="openai",
        display_name="OpenAI",
        engine="openai",
        is_local=False,
        default_base_url="https://api.openai.com/v1",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="OPENAI_API_KEY",
        base_url_env_var="OPENAI_BASE_URL",
    ),
    ProviderDescriptor(
        id="openrouter",
        display_name="OpenRouter",
        engine="openai",
        is_local=False,
        default_base_url="https://openrouter.ai/api/v1",
        catalog_kind=CatalogKind.DYNAMIC,
        credential_env_var="OPENROUTER_API_KEY",
        base_url_env_var="OPENROUTER_BASE_URL",
    ),
    ProviderDescriptor(
        id="groq",
        display_name="Groq",
        engine="openai",
        is_local=False,
        default_base_url="https://api.groq.com/openai/v1",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="GROQ_API_KEY",
    ),
    ProviderDescriptor(
        id="google",
        display_name="Google Gemini",
        engine="google",
        is_local=False,
        default_base_url="https://generativelanguage.googleapis.com/v1beta",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="GOOGLE_API_KEY",
    ),
    ProviderDescriptor(
        id="deepseek",
        display_name="DeepSeek",
        engine="openai",
        is_local=False,
        default_base_url="https://api.deepseek.com/v1",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="DEEPSEEK_API_KEY",
    ),
    ProviderDescriptor(
        id="together",
        display_name="Together AI",
        engine="openai",
        is_local=False,
        default_base_url="https://api.together.xyz/v1",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="TOGETHER_API_KEY",
    ),
    ProviderDescriptor(
        id="fireworks",
        display_name="Fireworks AI",
        engine="openai",
        is_local=False,
        default_base_url="https://api.fireworks.ai/inference/v1",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="FIREWORKS_API_KEY",
    ),
    ProviderDescriptor(
        id="mistral",
        display_name="Mistral AI",
        engine="openai",
        is_local=False,
        default_base_url="https://api.mistral.ai/v1",
        catalog_kind=CatalogKind.STATIC,
        credential_env_var="MISTRAL_API_KEY",
    ),
)

# Short names accepted wherever a provider id is.
PROVIDER_ALIASES: dict[str, str] = {
    "ol": "ollama",
    "or": "openrouter",
    "oai": "openai",
    "ant": "anthropic",
    "claude": "anthropic",
    "gpt": "openai",
    "lms": "lmstudio",
    "llama": "llamacpp",
    "ds": "deepseek",
    "tg": "together",
    "fw": "fireworks",
    "mi": "mistral",
    "gem": "google",
}


class ProviderRegistry:
    """Ordered, read-only lookup of ProviderDescriptors.

    Args:
        descriptors: Provider table in display order. Defaults to
            BUILTIN_PROVIDERS.
        aliases: Alias -> provider id map. Defaults to PROVIDER_ALIASES.

    Raises:
        ValueError: If two descriptors share an id.
    """

    def __init__(
        self,
        descriptors: Iterable[ProviderDescriptor] = BUILTIN_PROVIDERS,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._providers: dict[str, ProviderDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._providers:
                raise ValueError(f"Duplicate provider id: {descriptor.id!r}")
            self._providers[descriptor.id] = descriptor
        self._aliases = dict(PROVIDER_ALIASES if aliases is None else aliases)

    def resolve_alias(self, id_or_alias: str) -> str:
        """Maps an alias to its provider id; other ids are lower-cased and returned."""
        key = id_or_alias.strip().lower()
        return self._aliases.get(key, key)

    def get(self, provider_id: str) -> ProviderDescriptor | None:
        """Returns the descriptor for a provider id or alias, None if unknown."""
        return self._providers.get(self.resolve_alias(provider_id))

    def all(self) -> tuple[ProviderDescriptor, ...]:
        """All descriptors in insertion order."""
        return tuple(self._providers.values())

    def ids(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return isinstance(provider_id, str) and self.get(provider_id) is not None

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)
