"""Local daemon adapters — Ollama and OpenAI-compatible local servers.

Daemons need no credential, so they are always configured; whether they
are running is answered by is_available(), a short-timeout probe that
returns False on any error. Listing queries the running process.

Ollama endpoints used:
    GET  /api/tags   probe + installed models
    POST /api/pull   NDJSON status stream ({"status": ..., "completed": n, "total": m})

LM Studio and llama.cpp serve the OpenAI ``GET /models`` listing and
have no pull endpoint.

Tier 2 — imports from base.py + httpx.
"""

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

import httpx

from modelroute.errors import CatalogUnavailable
from modelroute.models import ProviderDescriptor, ProviderModel
from modelroute.providers.base import ProgressSink, ProviderAdapter

logger = logging.getLogger(__name__)

_PROBE_TIMEOUT = 2.0  # seconds
_LIST_TIMEOUT = 5.0
_CONNECT_TIMEOUT = 5.0

_PARAM_SIZE = re.compile(r"^\s*([\d.]+)\s*([KMBT]?)", re.IGNORECASE)


def estimate_context_length(parameter_size: str | None) -> int:
    """Rough context window from a parameter-size label like "7.6B" or "500M"."""
    if not parameter_size:
        return 4096
    match = _PARAM_SIZE.match(parameter_size)
    if not match:
        return 4096
    billions = float(match.group(1))
    unit = match.group(2).upper()
    if unit == "M":
        billions /= 1000
    elif unit == "K":
        billions /= 1_000_000
    elif unit == "T":
        billions *= 1000
    if billions >= 30:
        return 32768
    if billions >= 13:
        return 16384
    if billions >= 7:
        return 8192
    return 4096


def format_size(num_bytes: int | None) -> str | None:
    """Human-readable on-disk size (decimal units, as the Ollama CLI prints)."""
    if not isinstance(num_bytes, int) or num_bytes <= 0:
        return None
    for unit, scale in (("GB", 1e9), ("MB", 1e6), ("KB", 1e3)):
        if num_bytes >= scale:
            return f"{num_bytes / scale:.1f} {unit}"
    return f"{num_bytes} B"


def _describe_pull_event(event: dict[str, Any]) -> str:
    status = str(event.get("status", ""))
    total, completed = event.get("total"), event.get("completed")
    if isinstance(total, int) and total > 0 and isinstance(completed, int):
        return f"{status} {completed * 100 // total}%"
    return status


class _LocalAdapter(ProviderAdapter):
    """Shared HTTP plumbing for daemon adapters."""

    _listing_path: str = ""  # probed by is_available(), read by fetch_models()

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        probe_timeout: float = _PROBE_TIMEOUT,
        list_timeout: float = _LIST_TIMEOUT,
        credential: str | None = None,
        base_url: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(descriptor, credential=credential, base_url=base_url, env=env)
        self._transport = transport
        self._probe_timeout = probe_timeout
        self._list_timeout = list_timeout

    def _client(self, timeout: float | httpx.Timeout) -> httpx.AsyncClient:
        headers = {}
        if self.credential:
            headers["Authorization"] = f"Bearer {self.credential}"
        return httpx.AsyncClient(transport=self._transport, timeout=timeout, headers=headers)

    async def is_available(self) -> bool:
        """Probes the daemon's listing endpoint. False on any error or timeout."""
        url = f"{self.base_url}{self._listing_path}"
        try:
            async with self._client(self._probe_timeout) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.debug("%s not reachable at %s: %s", self.provider_id, url, type(exc).__name__)
            return False
        return response.is_success

    async def _get_listing(self) -> Any:
        url = f"{self.base_url}{self._listing_path}"
        try:
            async with self._client(self._list_timeout) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            raise CatalogUnavailable(
                f"Listing {url} failed: {type(exc).__name__}", step="catalog"
            ) from exc
        except ValueError as exc:
            raise CatalogUnavailable(f"Malformed listing body from {url}", step="catalog") from exc


class OllamaAdapter(_LocalAdapter):
    """Adapter for a local Ollama daemon (default http://localhost:11434)."""

    _listing_path = "/api/tags"

    @property
    def supports_pull(self) -> bool:
        return True

    async def fetch_models(self) -> list[ProviderModel]:
        """Lists installed models.

        Raises:
            CatalogUnavailable: If the daemon is unreachable or answers
                with something other than a ``models`` list.
        """
        body = await self._get_listing()
        items = body.get("models") if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise CatalogUnavailable("Ollama listing has no 'models' list", step="catalog")

        models = []
        for item in items:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                continue
            details = item.get("details") or {}
            parameter_size = details.get("parameter_size") if isinstance(details, dict) else None
            models.append(
                ProviderModel(
                    id=item["name"],
                    display_name=item["name"],
                    provider_id=self.provider_id,
                    context_length=estimate_context_length(parameter_size),
                    is_free=True,
                    size_on_disk=format_size(item.get("size")),
                )
            )
        return models

    async def pull_model(self, model_id: str, on_progress: ProgressSink | None = None) -> bool:
        """Pulls a model through the daemon, streaming status lines.

        Runs until the daemon closes the stream. Cancelling the caller
        abandons the pull; the daemon owns any partial download.

        Args:
            model_id: Model name with tag, e.g. "qwen2.5-coder:7b".
            on_progress: Receives one status line per daemon update.

        Returns:
            True if the stream completed without an error event.
        """
        url = f"{self.base_url}/api/pull"
        # No read timeout: layers can take minutes between status lines.
        timeout = httpx.Timeout(_CONNECT_TIMEOUT, read=None)
        logger.info("Pulling %s via %s", model_id, self.provider_id)
        try:
            async with self._client(timeout) as client:
                async with client.stream("POST", url, json={"name": model_id, "stream": True}) as response:
                    if not response.is_success:
                        logger.warning("Pull of %s rejected with HTTP %d", model_id, response.status_code)
                        return False
                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        try:
                            event = json.loads(line)
                        except ValueError:
                            logger.debug("Skipping non-JSON pull line: %r", line[:80])
                            continue
                        if not isinstance(event, dict):
                            continue
                        if "error" in event:
                            logger.warning("Pull of %s failed: %s", model_id, event["error"])
                            if on_progress is not None:
                                on_progress(f"error: {event['error']}")
                            return False
                        if event.get("status") and on_progress is not None:
                            on_progress(_describe_pull_event(event))
        except httpx.HTTPError as exc:
            logger.warning("Pull of %s failed: %s", model_id, type(exc).__name__)
            return False
        return True


class OpenAICompatibleServerAdapter(_LocalAdapter):
    """Adapter for local servers exposing the OpenAI ``/models`` listing.

    Used for LM Studio and llama.cpp. Pulling is not supported.
    """

    _listing_path = "/models"

    async def fetch_models(self) -> list[ProviderModel]:
        """Lists the models the server has loaded.

        Raises:
            CatalogUnavailable: If the server is unreachable or answers
                with something other than a ``data`` list.
        """
        body = await self._get_listing()
        items = body.get("data") if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise CatalogUnavailable(
                f"{self.provider_id} listing has no 'data' list", step="catalog"
            )
        return [
            ProviderModel(
                id=item["id"],
                display_name=item["id"],
                provider_id=self.provider_id,
                context_length=item.get("context_length") if isinstance(item.get("context_length"), int) else 0,
                is_free=True,
            )
            for item in items
            if isinstance(item, dict) and isinstance(item.get("id"), str)
        ]
