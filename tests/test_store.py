# tests/test_store.py
"""Tests for the descriptor store and its durable backends."""

import json
import tempfile
import threading
from pathlib import Path

import pytest

from aasdiscovery.config import DiscoveryConfig
from aasdiscovery.errors import InvalidInputError, StorageError
from aasdiscovery.index import LinkIndex
from aasdiscovery.links import NameValue
from aasdiscovery.storage import FileBackend, MemoryBackend, SQLiteBackend
from aasdiscovery.store import DescriptorStore, RegisterOutcome, create_store

SN1 = NameValue("serialNumber", "S1")
SN2 = NameValue("serialNumber", "S2")
PLANT = NameValue("plant", "P1")
LINE = NameValue("line", "L1")


class FailingBackend(MemoryBackend):
    """Memory backend whose writes and deletes can be made to fail."""

    def __init__(self):
        self.fail = False

    def write(self, aas_id, pairs):
        if self.fail:
            raise StorageError("disk full")

    def delete(self, aas_id):
        if self.fail:
            raise StorageError("disk full")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store():
    """Create an in-memory store."""
    return DescriptorStore()


def assert_index_consistent(store):
    """The index must equal one rebuilt from the records alone."""
    assert store.index_snapshot() == LinkIndex.from_records(store.records()).to_dict()


class TestRegister:
    """Test register semantics."""

    def test_create_then_replace(self, store):
        assert store.register("A", [SN1, PLANT]) == RegisterOutcome.CREATED
        assert store.register("A", [SN2]) == RegisterOutcome.REPLACED

    def test_replace_is_total(self, store):
        """Test old pairs vanish from both the record and the index."""
        store.register("A", [SN1, PLANT])
        store.register("A", [SN2, LINE])

        assert store.get("A") == frozenset({SN2, LINE})
        assert store.search_ids([PLANT]) == []
        assert store.search_ids([SN1]) == []
        assert store.search_ids([SN2]) == ["A"]
        assert_index_consistent(store)

    def test_duplicates_collapse(self, store):
        store.register("A", [SN1, SN1, PLANT])
        assert store.get("A") == frozenset({SN1, PLANT})

    def test_empty_pair_set_is_a_record(self, store):
        store.register("A", [])
        assert "A" in store
        assert store.get("A") == frozenset()

    def test_invalid_input_rejected_before_mutation(self, store):
        store.register("A", [SN1])
        with pytest.raises(InvalidInputError):
            store.register("A", [SN2, NameValue("plant", "")])
        with pytest.raises(InvalidInputError):
            store.register("", [SN2])
        assert store.get("A") == frozenset({SN1})
        assert len(store) == 1


class TestGetDelete:
    """Test lookup and delete."""

    def test_get_missing(self, store):
        assert store.get("missing") is None

    def test_delete(self, store):
        store.register("A", [SN1, PLANT])
        store.register("B", [SN2, PLANT])

        assert store.delete("A") is True
        assert store.get("A") is None
        assert store.search_ids([PLANT]) == ["B"]
        assert_index_consistent(store)

    def test_delete_twice(self, store):
        store.register("A", [SN1])
        assert store.delete("A") is True
        assert store.delete("A") is False

    def test_delete_empty_id_rejected(self, store):
        with pytest.raises(InvalidInputError):
            store.delete("")

    def test_list_ids_sorted(self, store):
        store.register("b", [SN1])
        store.register("a", [SN1])
        assert store.list_ids() == ["a", "b"]
        assert len(store) == 2


class TestStorageFailure:
    """Test that backend failures propagate and leave state unchanged."""

    def test_failed_register_keeps_old_state(self):
        backend = FailingBackend()
        store = DescriptorStore(backend)
        store.register("A", [SN1])

        backend.fail = True
        with pytest.raises(StorageError):
            store.register("A", [SN2])
        with pytest.raises(StorageError):
            store.register("B", [SN2])

        assert store.get("A") == frozenset({SN1})
        assert store.get("B") is None
        assert store.search_ids([SN1]) == ["A"]
        assert_index_consistent(store)

    def test_failed_delete_keeps_record(self):
        backend = FailingBackend()
        store = DescriptorStore(backend)
        store.register("A", [SN1])

        backend.fail = True
        with pytest.raises(StorageError):
            store.delete("A")
        assert store.get("A") == frozenset({SN1})


class TestConcurrency:
    """Test concurrent mutations keep the store and index consistent."""

    def test_same_id_last_writer_wins(self, store):
        candidates = [frozenset({NameValue("v", str(i)), PLANT}) for i in range(16)]

        threads = [
            threading.Thread(target=store.register, args=("A", pairs))
            for pairs in candidates
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get("A") in candidates
        assert store.search_ids([PLANT]) == ["A"]
        assert_index_consistent(store)

    def test_different_ids_in_parallel(self, store):
        def worker(n):
            for i in range(20):
                aas_id = f"urn:aas:{n}:{i}"
                store.register(aas_id, [PLANT, NameValue("worker", str(n))])
                if i % 2:
                    store.delete(aas_id)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 8 * 10
        assert len(store.search_ids([PLANT])) == 80
        assert len(store.search_ids([PLANT, NameValue("worker", "3")])) == 10
        assert_index_consistent(store)

    def test_id_locks_released(self, store):
        store.register("A", [SN1])
        store.delete("A")
        assert store._id_locks == {}


class TestFileBackend:
    """Test durable JSON file storage."""

    def test_persistence(self, temp_dir):
        store1 = DescriptorStore(FileBackend(temp_dir))
        store1.register("urn:aas:1", [SN1, PLANT])
        store1.register("urn:aas:2", [SN2, PLANT])
        store1.register("urn:aas:1", [SN1, LINE])

        store2 = DescriptorStore(FileBackend(temp_dir))
        assert store2.get("urn:aas:1") == frozenset({SN1, LINE})
        assert store2.search_ids([PLANT]) == ["urn:aas:2"]
        assert_index_consistent(store2)

    def test_one_file_per_record(self, temp_dir):
        store = DescriptorStore(FileBackend(temp_dir))
        store.register("urn:aas:1", [SN1])
        store.register("urn:aas:2", [SN2])

        files = sorted((temp_dir / "records").glob("*.json"))
        assert len(files) == 2
        ids = {json.loads(f.read_text())["aas_id"] for f in files}
        assert ids == {"urn:aas:1", "urn:aas:2"}
        assert not list((temp_dir / "records").glob("*.tmp"))

    def test_delete_removes_file(self, temp_dir):
        store = DescriptorStore(FileBackend(temp_dir))
        store.register("urn:aas:1", [SN1])
        store.delete("urn:aas:1")

        assert list((temp_dir / "records").glob("*.json")) == []
        assert DescriptorStore(FileBackend(temp_dir)).get("urn:aas:1") is None

    def test_corrupt_record_raises(self, temp_dir):
        records_dir = temp_dir / "records"
        records_dir.mkdir(parents=True)
        (records_dir / "broken.json").write_text("{not json")

        with pytest.raises(StorageError):
            DescriptorStore(FileBackend(temp_dir))


class TestSQLiteBackend:
    """Test durable SQLite storage."""

    def test_persistence(self, temp_dir):
        db_path = temp_dir / "links.db"
        store1 = DescriptorStore(SQLiteBackend(db_path))
        store1.register("urn:aas:1", [SN1, PLANT])
        store1.register("urn:aas:2", [SN2, PLANT])
        store1.register("urn:aas:1", [SN1, LINE])
        store1.register("urn:aas:3", [])
        store1.delete("urn:aas:2")

        store2 = DescriptorStore(SQLiteBackend(db_path))
        assert store2.records() == {
            "urn:aas:1": frozenset({SN1, LINE}),
            "urn:aas:3": frozenset(),
        }
        assert store2.search_ids([PLANT]) == []
        assert_index_consistent(store2)

    def test_unopenable_database_raises(self, temp_dir):
        (temp_dir / "links.db").mkdir()
        with pytest.raises(StorageError):
            SQLiteBackend(temp_dir / "links.db")


class TestCreateStore:
    """Test backend selection from configuration."""

    def test_memory(self):
        store = create_store(DiscoveryConfig(storage_backend="memory"))
        assert isinstance(store.backend, MemoryBackend)

    def test_file(self, temp_dir):
        store = create_store(DiscoveryConfig(storage_backend="file", storage_path=str(temp_dir)))
        assert isinstance(store.backend, FileBackend)

    def test_sqlite(self, temp_dir):
        store = create_store(DiscoveryConfig(storage_backend="sqlite", storage_path=str(temp_dir)))
        assert isinstance(store.backend, SQLiteBackend)
        assert (temp_dir / "asset_links.db").exists()
