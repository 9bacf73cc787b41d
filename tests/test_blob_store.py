"""Tests for the SQLite blob store and the store repository."""

import pytest

from cafebooks.database.factories import create_sqlite_store
from cafebooks.database.models import StoredBlob
from cafebooks.database.repository import StoreRepository
from cafebooks.domain.entities import StoreState
from cafebooks.domain.errors import ExternalServiceError


def test_empty_store_returns_none(temp_store):
    """A fresh database holds no blob."""
    assert temp_store.get() is None


def test_put_then_get(temp_store):
    blob = {"accounts": [], "customCategories": ["نوشیدنی‌ها"]}

    temp_store.put(blob)

    assert temp_store.get() == blob


def test_put_overwrites(temp_store):
    temp_store.put({"version": 1})
    temp_store.put({"version": 2})

    assert temp_store.get() == {"version": 2}


def test_blob_persists_across_connections(temp_store):
    temp_store.put({"vendors": [{"id": "v1", "name": "Pak Co"}]})

    other = create_sqlite_store(database_path=temp_store.database_path)
    try:
        assert other.get() == {"vendors": [{"id": "v1", "name": "Pak Co"}]}
    finally:
        other.disconnect()


def test_corrupt_blob_raises_external_error(temp_store):
    """Invalid JSON in the database is a storage failure."""
    session = temp_store._get_session()
    session.add(StoredBlob(name=temp_store.blob_name, content="{not json"))
    session.commit()

    with pytest.raises(ExternalServiceError, match="not valid JSON"):
        temp_store.get()


def test_non_object_blob_raises_external_error(temp_store):
    temp_store.put([1, 2, 3])

    with pytest.raises(ExternalServiceError):
        temp_store.get()


def test_unserializable_blob(temp_store):
    with pytest.raises(ExternalServiceError, match="Cannot serialize"):
        temp_store.put({"value": object()})


class TestStoreRepository:
    """Tests for loading and saving the store state."""

    def test_load_empty_store(self, temp_store):
        assert StoreRepository(temp_store).load() == StoreState()

    def test_save_and_load(self, temp_store, state, cafe):
        repository = StoreRepository(temp_store)

        repository.save(state)

        assert repository.load() == state

    def test_malformed_blob(self, temp_store):
        """Records missing required keys cannot be loaded."""
        temp_store.put({"accounts": [{"code": "1-101"}]})

        with pytest.raises(ExternalServiceError, match="malformed"):
            StoreRepository(temp_store).load()
