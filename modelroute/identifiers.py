"""Model identifier parsing and formatting.

Identifier format: ``<provider>/<model>[:<tag>]``.

    anthropic/claude-3-5-sonnet-20241022
    ollama/qwen2.5-coder:7b                  -> tag "7b"
    openrouter/deepseek/deepseek-chat-v3.1:free
                                             -> model "deepseek/deepseek-chat-v3.1", tag "free"

Only the first ``/`` separates the provider, so catalog ids that contain
slashes (OpenRouter) survive intact. A bare ``model`` takes the caller's
default provider; without one it is rejected. No guessing from model names.

format_identifier(parse_identifier(s)) == s for every canonical identifier
(provider segment already lowercase).
"""

from modelroute.errors import InvalidIdentifier
from modelroute.models import ModelReference

_HINT = "Use the form provider/model[:tag], e.g. ollama/qwen2.5-coder:7b."


def parse_identifier(raw: str, default_provider: str | None = None) -> ModelReference:
    """Parses a raw identifier string into a ModelReference.

    Args:
        raw: The identifier as typed by the user or read from storage.
        default_provider: Provider id for identifiers without a ``/``.
            Must be the provider the resolver picks when no identifier
            is given at all.

    Returns:
        The parsed reference, provider id lower-cased.

    Raises:
        InvalidIdentifier: If the string is empty, a segment is empty, or
            the identifier is bare and no default provider is configured.
    """
    text = (raw or "").strip()
    if not text:
        raise InvalidIdentifier("Model identifier is empty.", step="parse", hint=_HINT)

    provider, sep, model_part = text.partition("/")
    if not sep:
        if not default_provider:
            raise InvalidIdentifier(
                f"Model identifier {text!r} has no provider and no default provider is configured.",
                step="parse",
                hint=_HINT,
            )
        provider, model_part = default_provider, text

    provider = provider.strip().lower()
    if not provider:
        raise InvalidIdentifier(
            f"Model identifier {text!r} has an empty provider segment.",
            step="parse",
            hint=_HINT,
        )

    model, colon, tag = model_part.partition(":")
    if not model:
        raise InvalidIdentifier(
            f"Model identifier {text!r} has an empty model segment.",
            step="parse",
            hint=_HINT,
        )
    if colon and not tag:
        raise InvalidIdentifier(
            f"Model identifier {text!r} ends with ':' but has no tag.",
            step="parse",
            hint=_HINT,
        )

    return ModelReference(provider_id=provider, model_id=model, tag=tag if colon else None)


def format_identifier(ref: ModelReference) -> str:
    """Formats a reference back into ``provider/model[:tag]``."""
    return f"{ref.provider_id}/{ref.qualified_model}"


def build_identifier(provider_id: str, model_id: str) -> str:
    """Joins a provider id and a provider-side model id (tag included)."""
    return f"{provider_id}/{model_id}"


def is_valid_identifier(raw: str, default_provider: str | None = None) -> bool:
    """Returns True if parse_identifier would accept the string."""
    try:
        parse_identifier(raw, default_provider)
    except InvalidIdentifier:
        return False
    return True
