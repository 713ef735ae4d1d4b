"""Shared fixtures: storage backends and a store pre-filled with the Flights example."""

import pytest

from pointscalc.errors import PersistenceError
from pointscalc.models import Item
from pointscalc.storage import MemoryBlobStorage, SqliteBlobStorage
from pointscalc.store import CatalogStore


class FailingStorage(MemoryBlobStorage):
    """Reads work, every write is rejected (think quota exceeded)."""

    def set(self, key, value):
        raise PersistenceError("quota exceeded")


@pytest.fixture
def memory_storage():
    return MemoryBlobStorage()


@pytest.fixture
def sqlite_storage(tmp_path):
    return SqliteBlobStorage(str(tmp_path / "points.sqlite3"))


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def store(memory_storage):
    return CatalogStore.open(memory_storage)


@pytest.fixture
def flights(store):
    store.add_item("Flights", Item(name="A", points=100, price=50))
    store.add_item("Flights", Item(name="B", points=200, price=150))
    return store
