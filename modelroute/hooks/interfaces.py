"""Hook interfaces — abstract storage port for user model settings.

The resolver and the API never read configuration files directly; they
talk to a ModelStore. The JSON-file implementation is what the CLI and
server use; the in-memory one lets tests run without touching disk.

Tier 1 leaf module: imports only from abc (stdlib) and modelroute.schemas.

To implement another store (e.g. a settings service), subclass ModelStore
and implement every abstract method. Python raises TypeError at
instantiation if any method is missing. Then add it to the contract-test
fixture in tests/contracts/conftest.py.

Usage:
    from modelroute.hooks.interfaces import ModelStore
"""

from abc import ABC, abstractmethod

from modelroute.schemas import CustomModelEntry


class ModelStore(ABC):
    """Durable storage for custom models and the default model.

    Every mutation reads the current state, applies the change, and writes
    the full new state. Implementations treat missing or unreadable state
    as empty, never as an error.

    Known limitation: no locking. Two processes mutating the same store
    at once race, and the last writer wins. Acceptable for a single-user
    local tool.
    """

    # -- Custom models -------------------------------------------------------

    @abstractmethod
    async def list_custom_models(self) -> list[CustomModelEntry]:
        """Returns all custom models in insertion order."""
        ...

    @abstractmethod
    async def get_custom_model(self, model_id: str) -> CustomModelEntry | None:
        """Returns the custom model with this full id, None if absent."""
        ...

    @abstractmethod
    async def add_custom_model(self, entry: CustomModelEntry) -> None:
        """Appends a custom model.

        Args:
            entry: The entry to persist.

        Raises:
            DuplicateModel: If an entry with the same id already exists.
        """
        ...

    @abstractmethod
    async def remove_custom_model(self, model_id: str) -> bool:
        """Removes a custom model.

        Absence is an expected outcome, so it is reported, not raised.

        Args:
            model_id: Full id of the entry to remove.

        Returns:
            True if an entry was removed, False if none matched.
        """
        ...

    # -- Default model ---------------------------------------------------------

    @abstractmethod
    async def get_default(self) -> str | None:
        """Returns the stored default model identifier, None if unset."""
        ...

    @abstractmethod
    async def set_default(self, model_id: str) -> None:
        """Stores (or overwrites) the default model identifier."""
        ...

    @abstractmethod
    async def clear_default(self) -> bool:
        """Removes the stored default. Returns False if none was set."""
        ...
