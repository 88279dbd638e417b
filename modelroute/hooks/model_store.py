"""Model store implementations — JSON files on disk, and an in-memory stub.

JsonFileModelStore keeps two documents in the configuration directory:

    custom-models.json   [{"id": "...", "name": "...", "provider": "...",
                           "baseUrl": "...", "apiKey": "..."}, ...]
    default-model.json   {"model": "provider/model"}

Every mutation re-reads the file, applies the change in memory and writes
the whole document to a temporary file that then replaces the original
(os.replace), so a reader sees either the old or the new document, never a
partial one. Missing or corrupt files read as empty. The older wrapped
layout ``{"version": ..., "models": [...]}`` is accepted on read.

Tier 2 service module: imports from modelroute.hooks.interfaces (Tier 1).

Usage:
    from modelroute.hooks.model_store import JsonFileModelStore

    store = JsonFileModelStore("~/.recoder-code")
    await store.set_default("ollama/qwen2.5-coder:7b")
"""

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from modelroute.errors import DuplicateModel
from modelroute.hooks.interfaces import ModelStore
from modelroute.schemas import CustomModelEntry, DefaultModelRecord

logger = logging.getLogger("modelroute.hooks.model_store")

CUSTOM_MODELS_FILENAME = "custom-models.json"
DEFAULT_MODEL_FILENAME = "default-model.json"


def _duplicate(model_id: str) -> DuplicateModel:
    return DuplicateModel(
        f"Custom model {model_id!r} already exists.",
        step="add_custom_model",
        hint="Remove it first, or pick a different id.",
    )


def _normalize_record(item: Any) -> Any:
    """Fills fields the older wrapped layout did not store (label, no provider)."""
    if not isinstance(item, dict) or not isinstance(item.get("id"), str):
        return item
    record = dict(item)
    record.setdefault("name", record.get("label") or record["id"])
    if "provider" not in record and "/" in record["id"]:
        record["provider"] = record["id"].partition("/")[0].lower()
    return record


class JsonFileModelStore(ModelStore):
    """File-backed ModelStore under a per-user configuration directory.

    Not safe against concurrent writers in other processes (last writer
    wins); see ModelStore.

    Args:
        config_dir: Directory holding the JSON documents. Created on the
            first write. ``~`` is expanded.
    """

    def __init__(self, config_dir: str | Path) -> None:
        self._dir = Path(config_dir).expanduser()

    @property
    def config_dir(self) -> Path:
        return self._dir

    @property
    def custom_models_path(self) -> Path:
        return self._dir / CUSTOM_MODELS_FILENAME

    @property
    def default_model_path(self) -> Path:
        return self._dir / DEFAULT_MODEL_FILENAME

    # -- File primitives ---------------------------------------------------

    def _read_json(self, path: Path) -> Any | None:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Cannot read %s (%s); treating as empty", path, exc)
            return None
        try:
            return json.loads(text)
        except ValueError:
            logger.warning("Ignoring corrupt JSON in %s", path)
            return None

    def _write_json(self, path: Path, payload: Any) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    def _load_entries(self) -> list[CustomModelEntry]:
        path = self.custom_models_path
        raw = self._read_json(path)
        if isinstance(raw, dict):
            raw = raw.get("models")
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring %s: expected a JSON array", path)
            return []

        entries = []
        for item in raw:
            try:
                entries.append(CustomModelEntry.model_validate(_normalize_record(item)))
            except ValidationError:
                logger.warning("Skipping invalid custom model record in %s", path)
        return entries

    def _save_entries(self, entries: list[CustomModelEntry]) -> None:
        self._write_json(self.custom_models_path, [entry.to_record() for entry in entries])

    # -- Custom models -------------------------------------------------------

    async def list_custom_models(self) -> list[CustomModelEntry]:
        return self._load_entries()

    async def get_custom_model(self, model_id: str) -> CustomModelEntry | None:
        return next((e for e in self._load_entries() if e.id == model_id), None)

    async def add_custom_model(self, entry: CustomModelEntry) -> None:
        """Appends an entry. Raises DuplicateModel if the id is taken."""
        entries = self._load_entries()
        if any(e.id == entry.id for e in entries):
            raise _duplicate(entry.id)
        entries.append(entry)
        self._save_entries(entries)

    async def remove_custom_model(self, model_id: str) -> bool:
        """Removes an entry. False if no entry has this id."""
        entries = self._load_entries()
        kept = [e for e in entries if e.id != model_id]
        if len(kept) == len(entries):
            return False
        self._save_entries(kept)
        return True

    # -- Default model ---------------------------------------------------------

    async def get_default(self) -> str | None:
        path = self.default_model_path
        raw = self._read_json(path)
        if raw is None:
            return None
        try:
            return DefaultModelRecord.model_validate(raw).model
        except ValidationError:
            logger.warning("Ignoring invalid default model record in %s", path)
            return None

    async def set_default(self, model_id: str) -> None:
        record = DefaultModelRecord(model=model_id)
        self._write_json(self.default_model_path, record.model_dump())

    async def clear_default(self) -> bool:
        try:
            self.default_model_path.unlink()
        except FileNotFoundError:
            return False
        return True


class InMemoryModelStore(ModelStore):
    """STUB — dict-backed model store, loses data on restart.

    Same semantics as JsonFileModelStore (duplicate ids rejected, removal
    reports absence as False) without touching the filesystem.
    """

    def __init__(
        self,
        entries: list[CustomModelEntry] | None = None,
        default: str | None = None,
    ) -> None:
        """Initialises with optional seed entries and default."""
        self._entries: list[CustomModelEntry] = list(entries or [])
        self._default = default

    async def list_custom_models(self) -> list[CustomModelEntry]:
        return list(self._entries)

    async def get_custom_model(self, model_id: str) -> CustomModelEntry | None:
        return next((e for e in self._entries if e.id == model_id), None)

    async def add_custom_model(self, entry: CustomModelEntry) -> None:
        if any(e.id == entry.id for e in self._entries):
            raise _duplicate(entry.id)
        self._entries.append(entry)

    async def remove_custom_model(self, model_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != model_id]
        return len(self._entries) != before

    async def get_default(self) -> str | None:
        return self._default

    async def set_default(self, model_id: str) -> None:
        DefaultModelRecord(model=model_id)  # same validation as the file store
        self._default = model_id

    async def clear_default(self) -> bool:
        had_default = self._default is not None
        self._default = None
        return had_default
