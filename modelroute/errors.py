"""Typed failures for model resolution and model management.

Every hard failure carries the precedence step that failed and a hint
telling the caller what to try next. The HTTP layer turns these into
ApiResponse error envelopes; the CLI prints message and hint.

Tier 1 leaf — stdlib only.
"""


class ModelRoutingError(Exception):
    """Base class for resolution and model-store failures.

    Attributes:
        code: Stable machine-readable error code (e.g. "INVALID_IDENTIFIER").
        step: The resolution step or operation that failed.
        message: Human-readable description naming the bad input.
        hint: What the caller should try instead. May be empty.
    """

    code = "MODEL_ROUTING_ERROR"

    def __init__(self, message: str, *, step: str = "", hint: str = "") -> None:
        self.message = message
        self.step = step
        self.hint = hint
        super().__init__(message)


class InvalidIdentifier(ModelRoutingError):
    """The identifier string could not be parsed into provider/model[:tag]."""

    code = "INVALID_IDENTIFIER"


class UnknownProvider(ModelRoutingError):
    """The provider id matches neither a built-in provider nor a custom model."""

    code = "UNKNOWN_PROVIDER"


class ProviderNotConfigured(ModelRoutingError):
    """The provider needs a credential and none was found."""

    code = "PROVIDER_NOT_CONFIGURED"


class NoDefaultModel(ModelRoutingError):
    """No identifier, no stored default, and the policy forbids a fallback."""

    code = "NO_DEFAULT_MODEL"


class DuplicateModel(ModelRoutingError):
    """A custom model with the same id is already stored."""

    code = "DUPLICATE_MODEL"


class ModelNotFound(ModelRoutingError):
    """A custom model id was not present in the store."""

    code = "MODEL_NOT_FOUND"


class CatalogUnavailable(ModelRoutingError):
    """A model catalog could not be fetched.

    Soft failure: adapters and the catalog cache catch it and degrade to
    an empty (or last known good) listing. Never surfaced by resolve().
    """

    code = "CATALOG_UNAVAILABLE"
