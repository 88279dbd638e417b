"""Model resolution — one identifier in, one ready-to-call configuration out.

Precedence, strictly in this order:

    1. explicit identifier (parsed; InvalidIdentifier on failure)
    2. default stored in the ModelStore
    3. process default (MODELROUTE_MODEL, or the built-in fallback when the
       default-model policy allows it; NoDefaultModel otherwise)
    4. provider lookup in the registry; UnknownProvider unless a custom
       model declares that provider. A custom model stored under exactly
       this id routes through the provider it names.
    5. that exact custom model overrides base URL and credential. Other
       entries for the same provider lend their credential; they lend a
       base URL only to providers that exist solely as custom models.
    6. ProviderNotConfigured when the provider needs a credential and
       neither the environment nor a custom model supplies one
    7. dynamic catalogs are consulted through ModelCatalogCache; a miss is
       a warning on the result, never a failure
    8. assemble ResolvedModelConfig

Bare identifiers (no ``/``) take the provider of whatever steps 2-3 would
pick, so ``resolve("llama3")`` and ``resolve(None)`` agree on the provider.

Stateless per call: everything is injected and nothing is mutated, so one
resolver can serve concurrent callers.
"""

import logging
from collections.abc import Mapping

from modelroute.catalog import ModelCatalogCache
from modelroute.errors import (
    InvalidIdentifier,
    NoDefaultModel,
    ProviderNotConfigured,
    UnknownProvider,
)
from modelroute.hooks.interfaces import ModelStore
from modelroute.identifiers import format_identifier, parse_identifier
from modelroute.models import (
    CUSTOM_PROVIDER_ENGINE,
    CatalogKind,
    ModelReference,
    ResolvedModelConfig,
)
from modelroute.providers.base import ProviderAdapter
from modelroute.providers.registry import ProviderRegistry
from modelroute.providers.static import StaticCatalogAdapter
from modelroute.schemas import CustomModelEntry

logger = logging.getLogger("modelroute.resolver")

SOURCE_EXPLICIT = "explicit"
SOURCE_STORED_DEFAULT = "stored_default"
SOURCE_PROCESS_DEFAULT = "process_default"


class ModelResolver:
    """Turns a possibly absent identifier into a ResolvedModelConfig.

    Args:
        registry: Known providers.
        adapters: Provider id -> adapter (see providers.factory.build_adapters).
        store: Custom models and stored default.
        catalog: Cache used to validate ids against dynamic catalogs.
            None skips validation.
        process_default: Identifier used when neither the caller nor the
            store supplies one. None means "no fallback": resolving with
            nothing stored raises NoDefaultModel.
        validate_catalog: Set False to never consult dynamic catalogs
            (offline use).
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        adapters: Mapping[str, ProviderAdapter],
        store: ModelStore,
        catalog: ModelCatalogCache | None = None,
        *,
        process_default: str | None = None,
        validate_catalog: bool = True,
    ) -> None:
        self._registry = registry
        self._adapters = adapters
        self._store = store
        self._catalog = catalog
        self._process_default = process_default
        self._validate_catalog = validate_catalog

    @property
    def process_default(self) -> str | None:
        return self._process_default

    # -- Default selection ---------------------------------------------------

    def _process_reference(self) -> ModelReference | None:
        if not self._process_default:
            return None
        try:
            return parse_identifier(self._process_default)
        except InvalidIdentifier as exc:
            raise InvalidIdentifier(
                f"Process default model {self._process_default!r} is invalid: {exc.message}",
                step="process_default",
                hint="Fix MODELROUTE_MODEL; it must be a full provider/model identifier.",
            ) from exc

    async def default_reference(self) -> tuple[ModelReference, str]:
        """The model picked when no identifier is given, and where it came from.

        The process default is only parsed when it is needed: as the
        fallback, or to lend its provider to a bare stored default.

        Returns:
            (reference, source) with source "stored_default" or "process_default".

        Raises:
            InvalidIdentifier: If the stored default, or a process default
                that is actually needed, does not parse.
            NoDefaultModel: If nothing is stored and there is no process default.
        """
        stored = await self._store.get_default()
        if stored:
            default_provider = None
            if "/" not in stored:
                process_ref = self._process_reference()
                default_provider = process_ref.provider_id if process_ref else None
            try:
                ref = parse_identifier(stored, default_provider=default_provider)
            except InvalidIdentifier as exc:
                raise InvalidIdentifier(
                    f"Stored default model {stored!r} is invalid: {exc.message}",
                    step="stored_default",
                    hint="Set a new default with a full provider/model identifier.",
                ) from exc
            return ref, SOURCE_STORED_DEFAULT
        process_ref = self._process_reference()
        if process_ref is not None:
            return process_ref, SOURCE_PROCESS_DEFAULT
        raise NoDefaultModel(
            "No model given, no default model stored, and no process default configured.",
            step="process_default",
            hint="Pass a model identifier, set a default model, or set MODELROUTE_MODEL.",
        )

    async def default_provider(self) -> str | None:
        """Provider id bare identifiers are parsed against, None if there is none."""
        try:
            ref, _ = await self.default_reference()
        except NoDefaultModel:
            return None
        return ref.provider_id

    async def parse(self, identifier: str) -> ModelReference:
        """Parses an identifier the way resolve() would (bare ids included).

        Raises:
            InvalidIdentifier: On any parse failure.
        """
        default_provider = None
        if "/" not in identifier:
            default_provider = await self.default_provider()
        return parse_identifier(identifier, default_provider=default_provider)

    def canonicalize(self, ref: ModelReference) -> ModelReference:
        """The same reference with a provider alias replaced by its provider id."""
        provider_id = self._registry.resolve_alias(ref.provider_id)
        if provider_id == ref.provider_id:
            return ref
        return ModelReference(provider_id=provider_id, model_id=ref.model_id, tag=ref.tag)

    # -- Resolution --------------------------------------------------------------

    async def resolve(self, identifier: str | None = None) -> ResolvedModelConfig:
        """Resolves an identifier (or the default) to a single configuration.

        Args:
            identifier: ``provider/model[:tag]``, a bare model name, or None
                to use the stored/process default.

        Returns:
            A fresh ResolvedModelConfig.

        Raises:
            InvalidIdentifier: The identifier (or a default) does not parse.
            NoDefaultModel: identifier is None and no default exists.
            UnknownProvider: The provider is neither built in nor custom.
            ProviderNotConfigured: A required credential is missing.
        """
        if identifier is not None:
            ref = await self.parse(identifier)
            source = SOURCE_EXPLICIT
        else:
            ref, source = await self.default_reference()
        return await self._assemble(ref, source)

    async def _assemble(self, ref: ModelReference, source: str) -> ResolvedModelConfig:
        ref = self.canonicalize(ref)
        full_id = format_identifier(ref)
        entries = await self._store.list_custom_models()
        exact = next((e for e in entries if self._entry_id(e) == full_id), None)

        # Step 4: an exact custom match routes through the provider it declares.
        provider_id = self._entry_provider(exact) if exact is not None else ref.provider_id
        descriptor = self._registry.get(provider_id)
        custom_providers = {self._entry_provider(entry) for entry in entries}
        if descriptor is None and exact is None and provider_id not in custom_providers:
            known = ", ".join(self._registry.ids())
            raise UnknownProvider(
                f"Unknown provider {provider_id!r} in {full_id!r}.",
                step="provider_lookup",
                hint=f"Use one of: {known}; or add a custom model for this provider.",
            )

        adapter = self._adapters.get(provider_id) if descriptor is not None else None

        # Step 5
        credential = exact.credential if exact is not None and exact.credential else None
        base_url = exact.base_url if exact is not None and exact.base_url else None
        if credential is None:
            credential = self._lend(provider_id, entries, "credential")
        if base_url is None and descriptor is None:
            # Only custom-only providers borrow a base URL from a sibling entry.
            base_url = self._lend(provider_id, entries, "base_url")
        if credential is None and adapter is not None:
            credential = adapter.credential
        if base_url is None and adapter is not None:
            base_url = adapter.base_url

        # Step 6
        if descriptor is None:
            # Custom-only provider: the entry itself must say where to call.
            if not base_url:
                raise ProviderNotConfigured(
                    f"Custom provider {provider_id!r} has no base URL.",
                    step="configuration",
                    hint=f"Re-add {full_id} with a base URL.",
                )
        elif descriptor.requires_credential and not credential:
            raise ProviderNotConfigured(
                f"Provider {provider_id!r} needs a credential and none is configured.",
                step="configuration",
                hint=(
                    f"Set {descriptor.credential_env_var}, or add a custom model "
                    f"for {provider_id} with an API key."
                ),
            )

        # Step 7
        context_length = None
        catalog_miss = False
        warnings: list[str] = []
        model_id = ref.qualified_model
        if descriptor is not None and adapter is not None:
            if descriptor.catalog_kind is CatalogKind.DYNAMIC:
                if self._catalog is not None and self._validate_catalog:
                    context_length, catalog_miss, warning = await self._check_catalog(
                        provider_id, model_id
                    )
                    if warning:
                        warnings.append(warning)
            elif isinstance(adapter, StaticCatalogAdapter):
                listed = adapter.find_model(model_id)
                if listed is not None and listed.context_length:
                    context_length = listed.context_length

        # Step 8
        resolved = ResolvedModelConfig(
            provider_id=provider_id,
            model_id=model_id,
            base_url=base_url or "",
            credential=credential,
            context_length=context_length,
            source=source,
            catalog_miss=catalog_miss,
            warnings=tuple(warnings),
            engine=descriptor.engine if descriptor is not None else CUSTOM_PROVIDER_ENGINE,
        )
        logger.info(
            "Resolved %s from %s via %s (base_url=%s, credential=%s, custom=%s)",
            full_id,
            source,
            provider_id,
            resolved.base_url,
            "yes" if resolved.has_credential else "no",
            "yes" if exact is not None else "no",
        )
        return resolved

    # -- Custom entries ------------------------------------------------------------

    def _entry_provider(self, entry: CustomModelEntry) -> str:
        return self._registry.resolve_alias(entry.provider_id)

    def _entry_id(self, entry: CustomModelEntry) -> str:
        """The entry id with an aliased provider prefix replaced by its provider id."""
        prefix, slash, rest = entry.id.partition("/")
        if not slash:
            return entry.id
        return f"{self._registry.resolve_alias(prefix)}/{rest}"

    def _lend(self, provider_id: str, entries: list[CustomModelEntry], field: str) -> str | None:
        """field of the newest entry for provider_id that sets it, None if none does."""
        for entry in reversed(entries):
            value = getattr(entry, field)
            if value and self._entry_provider(entry) == provider_id:
                return value
        return None

    async def _check_catalog(
        self, provider_id: str, model_id: str
    ) -> tuple[int | None, bool, str | None]:
        """Looks the model up in the cached catalog.

        Returns:
            (context_length, catalog_miss, warning)
        """
        models = await self._catalog.get_models(provider_id)
        if not models:
            warning = f"{provider_id} catalog unavailable; {model_id!r} not validated."
            logger.warning("%s", warning)
            return None, True, warning
        listed = next((m for m in models if m.id == model_id), None)
        if listed is None:
            warning = f"{model_id!r} is not in the {provider_id} catalog; passing it through."
            logger.warning("%s", warning)
            return None, True, warning
        return listed.context_length or None, False, None
