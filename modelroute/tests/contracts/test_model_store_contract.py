"""Contract tests for ModelStore — behavioral specification.

Verifies that any ModelStore implementation satisfies:
- Custom models keep insertion order and round-trip every field
- Duplicate ids are rejected with DuplicateModel
- Removing an absent id reports False, never raises
- The default model can be set, replaced, read and cleared

These tests use only the public interface — no internal state inspection.

Run against registered implementations:
    python -m pytest modelroute/tests/contracts/test_model_store_contract.py -v
"""

import pytest

from modelroute.errors import DuplicateModel
from modelroute.schemas import CustomModelEntry


class TestCustomModelsContract:
    """Behavioral contract for the custom-model list."""

    @pytest.mark.asyncio
    async def test_empty_store_lists_nothing(self, model_store) -> None:
        assert await model_store.list_custom_models() == []

    @pytest.mark.asyncio
    async def test_add_then_get_round_trips(self, model_store, sample_entry) -> None:
        await model_store.add_custom_model(sample_entry)
        result = await model_store.get_custom_model(sample_entry.id)
        assert result == sample_entry
        assert result.credential == "sk-contract"

    @pytest.mark.asyncio
    async def test_insertion_order_kept(self, model_store) -> None:
        for model_id in ("a/one", "b/two", "a/three"):
            await model_store.add_custom_model(
                CustomModelEntry(id=model_id, display_name=model_id, provider_id=model_id[0])
            )
        ids = [e.id for e in await model_store.list_custom_models()]
        assert ids == ["a/one", "b/two", "a/three"]

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, model_store, sample_entry) -> None:
        await model_store.add_custom_model(sample_entry)
        with pytest.raises(DuplicateModel) as exc_info:
            await model_store.add_custom_model(sample_entry)
        assert sample_entry.id in exc_info.value.message
        assert len(await model_store.list_custom_models()) == 1

    @pytest.mark.asyncio
    async def test_remove_existing(self, model_store, sample_entry) -> None:
        await model_store.add_custom_model(sample_entry)
        assert await model_store.remove_custom_model(sample_entry.id) is True
        assert await model_store.get_custom_model(sample_entry.id) is None

    @pytest.mark.asyncio
    async def test_remove_missing_returns_false(self, model_store) -> None:
        assert await model_store.remove_custom_model("ghost/model") is False

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, model_store) -> None:
        assert await model_store.get_custom_model("ghost/model") is None

    @pytest.mark.asyncio
    async def test_re_add_after_remove(self, model_store, sample_entry) -> None:
        await model_store.add_custom_model(sample_entry)
        await model_store.remove_custom_model(sample_entry.id)
        await model_store.add_custom_model(sample_entry)
        assert len(await model_store.list_custom_models()) == 1


class TestDefaultModelContract:
    """Behavioral contract for the default-model record."""

    @pytest.mark.asyncio
    async def test_no_default_initially(self, model_store) -> None:
        assert await model_store.get_default() is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, model_store) -> None:
        await model_store.set_default("ollama/qwen2.5-coder:7b")
        assert await model_store.get_default() == "ollama/qwen2.5-coder:7b"

    @pytest.mark.asyncio
    async def test_set_replaces(self, model_store) -> None:
        await model_store.set_default("x/first")
        await model_store.set_default("x/second")
        assert await model_store.get_default() == "x/second"

    @pytest.mark.asyncio
    async def test_clear(self, model_store) -> None:
        await model_store.set_default("x/y")
        assert await model_store.clear_default() is True
        assert await model_store.get_default() is None
        assert await model_store.clear_default() is False

    @pytest.mark.asyncio
    async def test_default_independent_of_custom_models(self, model_store, sample_entry) -> None:
        await model_store.set_default(sample_entry.id)
        await model_store.add_custom_model(sample_entry)
        await model_store.remove_custom_model(sample_entry.id)
        assert await model_store.get_default() == sample_entry.id
