"""Persisted records and API shapes — the Pydantic types of modelroute.

Two groups live here:
- Records persisted by the model store (CustomModelEntry, DefaultModelRecord).
  Their JSON keys match the files older installs already wrote
  (``name``, ``provider``, ``baseUrl``, ``apiKey``).
- HTTP request bodies, the response envelope and SSE events.

Request bodies forbid unknown fields: a misspelled option is a 422 at the
boundary, never a silently ignored key.

Tier 1 leaf module: imports only from pydantic and the stdlib.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


class CustomModelEntry(BaseModel):
    """A user-defined model override.

    id is the full ``provider/model`` identifier and the unique key.
    base_url and credential, when present, override the provider's
    defaults during resolution. The credential is excluded from repr so
    entries can be logged.

    Frozen — entries are created and removed, never edited in place.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    display_name: str = Field(alias="name")
    provider_id: str = Field(alias="provider", min_length=1)
    base_url: str | None = Field(default=None, alias="baseUrl")
    credential: str | None = Field(default=None, alias="apiKey", repr=False)

    def to_record(self) -> dict[str, Any]:
        """The on-disk JSON object for this entry."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DefaultModelRecord(BaseModel):
    """The persisted default model: ``{"model": "provider/model"}``."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class AddCustomModelRequest(BaseModel):
    """POST /models/custom."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    name: str | None = None
    provider: str | None = None
    base_url: str | None = None
    api_key: str | None = Field(default=None, repr=False)


class SetDefaultRequest(BaseModel):
    """PUT /models/default."""

    model_config = ConfigDict(extra="forbid")

    model: str = Field(min_length=1)


class ResolveRequest(BaseModel):
    """POST /models/resolve. model=None resolves the default."""

    model_config = ConfigDict(extra="forbid")

    model: str | None = None


class PullRequest(BaseModel):
    """POST /providers/{provider_id}/pull."""

    model_config = ConfigDict(extra="forbid")

    model: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside the response envelope."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    hint: str = ""


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None


# ---------------------------------------------------------------------------
# SSE events (model pull progress)
# ---------------------------------------------------------------------------


class ProgressEvent(BaseModel):
    """One status line from the daemon during a pull."""

    model_config = ConfigDict(frozen=True)

    status: str


class PullDoneEvent(BaseModel):
    """Pull finished; ok is False when the daemon reported a failure."""

    model_config = ConfigDict(frozen=True)

    model: str
    ok: bool


class ErrorEvent(BaseModel):
    """Stream-level error (timeout or unexpected failure)."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
