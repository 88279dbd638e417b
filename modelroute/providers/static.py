"""Static-catalog adapter and the hardcoded model tables.

Cloud providers whose model lists change rarely ship a fixed table here.
Context lengths are what the providers self-report; nothing is validated.
Update a table when a provider releases or retires a model.
"""

from collections.abc import Iterable, Mapping

from modelroute.models import ProviderDescriptor, ProviderModel
from modelroute.providers.base import ProviderAdapter


def _table(provider_id: str, rows: Iterable[tuple[str, str, int]]) -> tuple[ProviderModel, ...]:
    return tuple(
        ProviderModel(id=model_id, display_name=name, provider_id=provider_id, context_length=ctx)
        for model_id, name, ctx in rows
    )


# ---------------------------------------------------------------------------
# Model tables
# ---------------------------------------------------------------------------

STATIC_CATALOGS: dict[str, tuple[ProviderModel, ...]] = {
    "anthropic": _table("anthropic", [
        ("claude-sonnet-4-20250514", "Claude Sonnet 4", 200000),
        ("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", 200000),
        ("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", 200000),
        ("claude-3-opus-20240229", "Claude 3 Opus", 200000),
    ]),
    "openai": _table("openai", [
        ("gpt-4o", "GPT-4o", 128000),
        ("gpt-4o-mini", "GPT-4o Mini", 128000),
        ("gpt-4-turbo", "GPT-4 Turbo", 128000),
        ("gpt-4", "GPT-4", 8192),
        ("gpt-3.5-turbo", "GPT-3.5 Turbo", 16385),
        ("o1-preview", "o1 Preview", 128000),
        ("o1-mini", "o1 Mini", 128000),
    ]),
    "groq": _table("groq", [
        ("llama-3.3-70b-versatile", "Llama 3.3 70B", 128000),
        ("llama-3.1-70b-versatile", "Llama 3.1 70B", 128000),
        ("llama-3.1-8b-instant", "Llama 3.1 8B", 128000),
        ("mixtral-8x7b-32768", "Mixtral 8x7B", 32768),
        ("gemma2-9b-it", "Gemma 2 9B", 8192),
    ]),
    "google": _table("google", [
        ("gemini-2.0-flash", "Gemini 2.0 Flash", 1048576),
        ("gemini-1.5-pro", "Gemini 1.5 Pro", 2097152),
        ("gemini-1.5-flash", "Gemini 1.5 Flash", 1048576),
    ]),
    "deepseek": _table("deepseek", [
        ("deepseek-chat", "DeepSeek Chat", 64000),
        ("deepseek-reasoner", "DeepSeek Reasoner", 64000),
    ]),
    "mistral": _table("mistral", [
        ("mistral-large-latest", "Mistral Large", 128000),
        ("codestral-latest", "Codestral", 256000),
    ]),
    # Listed but uncatalogued: any identifier passes through.
    "together": (),
    "fireworks": (),
}


class StaticCatalogAdapter(ProviderAdapter):
    """Adapter over a fixed in-memory model table.

    fetch_models() never touches the network and never fails.

    Args:
        descriptor: The provider's static description.
        models: The provider's model table. Defaults to its entry in
            STATIC_CATALOGS (empty if none).
        credential, base_url, env: See ProviderAdapter.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        models: Iterable[ProviderModel] | None = None,
        *,
        credential: str | None = None,
        base_url: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(descriptor, credential=credential, base_url=base_url, env=env)
        if models is None:
            models = STATIC_CATALOGS.get(descriptor.id, ())
        self._models = tuple(models)

    @property
    def models(self) -> tuple[ProviderModel, ...]:
        return self._models

    async def fetch_models(self) -> list[ProviderModel]:
        return list(self._models)

    def find_model(self, model_id: str) -> ProviderModel | None:
        """Looks a model up in the table without awaiting."""
        return next((m for m in self._models if m.id == model_id), None)
