"""
Shared fixtures: a migrated temporary SQLite store and a scripted upstream.
"""
import pytest
import pytest_asyncio

from promptlens_gateway.migrations import MigrationManager
from promptlens_gateway.models import LatencyClass, ModelDescriptor
from promptlens_gateway.storage import SqlCredentialStore, create_engine

from fakes import FakeUpstream


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Empty SQLite database in a temporary directory."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'promptlens.db'}")
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def migrated_engine(engine):
    """Database brought to the latest schema version."""
    await MigrationManager(engine).initialize()
    return engine


@pytest_asyncio.fixture
async def credentials(migrated_engine):
    store = SqlCredentialStore(migrated_engine)
    await store.put("openai", "sk-test-openai")
    await store.put("anthropic", "sk-ant-test")
    return store


@pytest.fixture
def descriptor():
    """Factory for registry descriptors that need no database."""
    def make(model_id: str, provider: str = None, **overrides) -> ModelDescriptor:
        fields = {
            "id": model_id,
            "name": model_id,
            "provider": provider or ("anthropic" if model_id.startswith("claude") else "openai"),
            "context_window": 128000,
            "max_output_tokens": 4096,
            "input_cost_per_1m": 3.0,
            "output_cost_per_1m": 15.0,
            "latency": LatencyClass.FAST,
        }
        fields.update(overrides)
        return ModelDescriptor(**fields)
    return make
