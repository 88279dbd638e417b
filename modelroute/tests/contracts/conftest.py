"""Fixtures for contract tests — one parameterized fixture per hook interface.

Each fixture yields a fresh implementation instance: "json" writes to a
temporary directory, "memory" is the dict-backed stub. A new ModelStore
implementation adds a param value and an elif branch here.

To test a new implementation against the contract:
    1. Add your param string (e.g., "sqlite") to the params list.
    2. Add an elif branch that yields your implementation instance.
    3. Run: python -m pytest modelroute/tests/contracts/ -v

Uses @pytest_asyncio.fixture (not @pytest.fixture) for async fixture support
in strict mode.
"""

import pytest_asyncio

from modelroute.hooks.model_store import InMemoryModelStore, JsonFileModelStore
from modelroute.schemas import CustomModelEntry


# ---------------------------------------------------------------------------
# Interface fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(params=["json", "memory"])
async def model_store(request, tmp_path):
    """Yields a ModelStore implementation."""
    if request.param == "json":
        yield JsonFileModelStore(tmp_path / "config")
    elif request.param == "memory":
        yield InMemoryModelStore()


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def sample_entry() -> CustomModelEntry:
    """A custom model with both overrides set."""
    return CustomModelEntry(
        id="myhost/llama-70b",
        display_name="Llama 70B on myhost",
        provider_id="myhost",
        base_url="http://myhost:8080/v1",
        credential="sk-contract",
    )
