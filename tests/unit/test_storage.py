"""
Unit tests for the model registry, credential store and history repository.
"""
import pytest
import sqlalchemy as sa

from promptlens_gateway.core.errors import ModelNotFoundError
from promptlens_gateway.models import LatencyClass, Principal
from promptlens_gateway.storage import HistoryRepository, ModelRegistry, SqlCredentialStore, tables


class TestModelRegistry:
    """Test registry lookups and listing."""

    @pytest.mark.asyncio
    async def test_get_seeded_model(self, migrated_engine):
        """Test descriptor fields are read back from the seed."""
        model = await ModelRegistry(migrated_engine).get("claude-3-5-sonnet-20241022")

        assert model.provider == "anthropic"
        assert model.input_cost_per_1m == 3.0
        assert model.output_cost_per_1m == 15.0
        assert model.latency is LatencyClass.FAST
        assert model.context_window > 0

    @pytest.mark.asyncio
    async def test_get_model_added_by_migration(self, migrated_engine):
        """Test registry additions arrive through migrations."""
        model = await ModelRegistry(migrated_engine).get("gpt-4o")
        assert model.vision
        assert model.max_output_tokens == 16384

    @pytest.mark.asyncio
    async def test_get_unknown_model(self, migrated_engine):
        with pytest.raises(ModelNotFoundError) as exc_info:
            await ModelRegistry(migrated_engine).get("gpt-99")
        assert exc_info.value.model == "gpt-99"

    @pytest.mark.asyncio
    async def test_listing_order(self, migrated_engine):
        """Test openai first, then anthropic, each by descending input cost."""
        listing = await ModelRegistry(migrated_engine).list_models()

        providers = [m.provider for m in listing]
        assert providers == sorted(providers, key=lambda p: {"openai": 1, "anthropic": 2}.get(p, 3))
        for provider in ("openai", "anthropic"):
            costs = [m.input_cost_per_1m for m in listing if m.provider == provider]
            assert costs == sorted(costs, reverse=True)
        assert len(listing) == 11

    @pytest.mark.asyncio
    async def test_favorites_are_per_principal(self, migrated_engine):
        """Test favorite flags come from the principal's rows only."""
        async with migrated_engine.begin() as conn:
            await conn.execute(sa.insert(tables.model_favorites).values(user_id=1, model_id="gpt-4o-mini"))
            await conn.execute(sa.insert(tables.model_favorites).values(user_id=2, model_id="gpt-4-turbo"))

        registry = ModelRegistry(migrated_engine)
        favorites = {m.id for m in await registry.list_models() if m.is_favorite}
        other = {m.id for m in await registry.list_models(Principal(user_id=2)) if m.is_favorite}

        assert favorites == {"gpt-4o-mini"}
        assert other == {"gpt-4-turbo"}

    @pytest.mark.asyncio
    async def test_listing_serializes_favorite_flag(self, migrated_engine):
        """Test the wire name of the favorite flag."""
        listing = await ModelRegistry(migrated_engine).list_models()
        data = listing[0].model_dump(by_alias=True)
        assert "isFavorite" in data
        assert "is_favorite" not in data


class TestCredentialStore:
    """Test secret storage."""

    @pytest.mark.asyncio
    async def test_missing_secret(self, migrated_engine):
        assert await SqlCredentialStore(migrated_engine).get("openai") is None

    @pytest.mark.asyncio
    async def test_put_replaces(self, migrated_engine):
        """Test a second put replaces the first secret."""
        store = SqlCredentialStore(migrated_engine)
        await store.put("openai", "sk-old")
        await store.put("openai", "sk-new")

        assert await store.get("openai") == "sk-new"
        async with migrated_engine.connect() as conn:
            count = (await conn.execute(
                sa.select(sa.func.count()).select_from(tables.api_keys)
                .where(tables.api_keys.c.provider == "openai")
            )).scalar()
        assert count == 1

    @pytest.mark.asyncio
    async def test_secrets_are_per_principal(self, migrated_engine):
        store = SqlCredentialStore(migrated_engine)
        await store.put("anthropic", "sk-ant-1")

        assert await store.get("anthropic", Principal(user_id=2)) is None

    @pytest.mark.asyncio
    async def test_info_hides_secrets(self, migrated_engine):
        """Test info reports presence only."""
        store = SqlCredentialStore(migrated_engine)
        await store.put("anthropic", "sk-ant-1")

        info = await store.info(["openai", "anthropic"])

        assert info == [
            {"provider": "openai", "exists": False},
            {"provider": "anthropic", "exists": True},
        ]


class TestHistoryRepository:
    """Test comparison history."""

    @pytest.mark.asyncio
    async def test_save_and_list(self, migrated_engine):
        """Test comparisons come back newest first with decoded responses."""
        history = HistoryRepository(migrated_engine)
        first = await history.save_comparison("sys", "first", [{"model": "gpt-4o-mini", "content": "a"}])
        second = await history.save_comparison("sys", "second", [])

        recent = await history.recent_comparisons()

        assert [c["id"] for c in recent] == [second, first]
        assert recent[1]["responses"] == [{"model": "gpt-4o-mini", "content": "a"}]
        assert recent[0]["user_prompt"] == "second"

    @pytest.mark.asyncio
    async def test_limit(self, migrated_engine):
        history = HistoryRepository(migrated_engine)
        for i in range(3):
            await history.save_comparison("", f"prompt {i}", [])

        assert len(await history.recent_comparisons(limit=2)) == 2
