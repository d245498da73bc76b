"""
Pytest configuration and shared fixtures for JSONDB_ENGINE tests.

This module provides:
- Temporary data directories and engine configuration
- Collection store fixtures (disconnected and connected)
- Test data factories
"""

import json
from pathlib import Path
from typing import Any, AsyncGenerator, Dict

import pytest
import pytest_asyncio

from jsondb_engine.config import EngineConfig
from jsondb_engine.database import CollectionStore, clear_registry
from jsondb_engine.observability.metrics import get_metrics_collector


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without filesystem fixtures")
    config.addinivalue_line("markers", "integration: tests exercising the store end to end")


# ============================================================================
# ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_global_state(monkeypatch):
    """Reset registry, metrics and environment-derived config between tests."""
    for name in ("JSONDB_DATA_DIR", "JSONDB_WRITE_SYNC", "JSONDB_INDENT_SPACE"):
        monkeypatch.delenv(name, raising=False)
    clear_registry()
    get_metrics_collector().reset()
    yield
    clear_registry()
    get_metrics_collector().reset()


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Directory that will hold backing files (not created up front)."""
    return tmp_path / "data"


@pytest.fixture
def engine_config(data_dir: Path) -> EngineConfig:
    """Engine configuration pointing at the temporary data directory."""
    return EngineConfig(data_dir=data_dir)


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def person_schema() -> Dict[str, Any]:
    """Schema requiring a string name and an integer age."""
    return {
        "type": "object",
        "required": ["name", "age"],
        "properties": {
            "name": {"type": "string"},
            "username": {"type": "string"},
            "age": {"type": "integer"},
            "score": {"type": "number"},
            "active": {"type": "boolean"},
            "likes": {"type": "array"},
            "address": {"type": "object"},
        },
    }


@pytest.fixture
def sample_people() -> list:
    """A few valid documents for the person schema."""
    return [
        {"name": "Ann", "username": "ann", "age": 30, "likes": ["tea"]},
        {"name": "Bob", "username": "bob", "age": 25, "likes": []},
        {"name": "Ann", "username": "ann2", "age": 41, "likes": ["coffee", "cake"]},
    ]


@pytest.fixture
def read_backing_file():
    """Return a helper that parses a collection backing file."""

    def _read(path: Path) -> Dict[str, Any]:
        return json.loads(path.read_text(encoding="utf-8"))

    return _read


# ============================================================================
# COLLECTION FIXTURES
# ============================================================================


@pytest.fixture
def store(engine_config: EngineConfig) -> CollectionStore:
    """A freshly initialized, disconnected 'users' collection."""
    return CollectionStore.load("users", config=engine_config)


@pytest_asyncio.fixture
async def connected_store(
    store: CollectionStore, person_schema: Dict[str, Any]
) -> AsyncGenerator[CollectionStore, None]:
    """The 'users' collection connected with the person schema."""
    await store.connect(person_schema)
    yield store


@pytest_asyncio.fixture
async def populated_store(
    connected_store: CollectionStore, sample_people: list
) -> AsyncGenerator[CollectionStore, None]:
    """Connected collection holding ``sample_people``."""
    for person in sample_people:
        await connected_store.create(person)
    yield connected_store
