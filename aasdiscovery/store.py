# aasdiscovery/store.py
"""
Descriptor store: the owner of AAS id -> asset link sets.

The store keeps the current records and the derived LinkIndex in memory
and mirrors every mutation to a durable backend. Mutations of one AAS id
are serialized by a per-id lock held across the durable write; the
in-memory record map and index are then swapped under one short state
lock, so readers never see a half-applied register or delete.
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional

from .config import DiscoveryConfig
from .index import LinkIndex
from .links import NameValue, normalize_pairs, validate_aas_id
from .storage import FileBackend, MemoryBackend, SQLiteBackend

logger = logging.getLogger(__name__)


class RegisterOutcome(Enum):
    """Whether a register call created a new record or replaced one."""
    CREATED = "created"
    REPLACED = "replaced"


class _IdLock:
    """A lock plus the number of threads holding or waiting for it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class DescriptorStore:
    """
    Atomic replace, delete and lookup of asset link sets.

    Usage:
        store = DescriptorStore(FileBackend("/var/lib/aasdiscovery"))
        store.register("urn:aas:1", [NameValue("serialNumber", "SN-1")])
        store.get("urn:aas:1")
    """

    def __init__(self, backend=None):
        """
        Args:
            backend: Durable backend (MemoryBackend if not given). Its
                records are loaded and indexed immediately.
        """
        self.backend = backend if backend is not None else MemoryBackend()
        self._state_lock = threading.Lock()
        self._id_locks: Dict[str, _IdLock] = {}
        self._id_locks_guard = threading.Lock()

        self._records: Dict[str, FrozenSet[NameValue]] = dict(self.backend.load())
        self._index = LinkIndex.from_records(self._records)
        logger.info(
            f"Descriptor store ready: {len(self._records)} records, "
            f"{len(self._index)} distinct asset links"
        )

    @contextmanager
    def _locked(self, aas_id: str) -> Iterator[None]:
        """Hold the mutation lock of a single AAS id."""
        with self._id_locks_guard:
            entry = self._id_locks.get(aas_id)
            if entry is None:
                entry = self._id_locks[aas_id] = _IdLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._id_locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._id_locks[aas_id]

    def register(self, aas_id: str, pairs: Iterable[NameValue]) -> RegisterOutcome:
        """
        Store the asset links of an AAS, replacing any previous set.

        Raises:
            InvalidInputError: empty aas_id, or a pair with empty name/value
            StorageError: the backend write failed; nothing was changed
        """
        validate_aas_id(aas_id)
        new_pairs = normalize_pairs(pairs)

        with self._locked(aas_id):
            self.backend.write(aas_id, new_pairs)
            with self._state_lock:
                old_pairs = self._records.get(aas_id)
                self._records[aas_id] = new_pairs
                if old_pairs is None:
                    self._index.add(aas_id, new_pairs)
                else:
                    self._index.replace(aas_id, old_pairs, new_pairs)

        outcome = RegisterOutcome.CREATED if old_pairs is None else RegisterOutcome.REPLACED
        logger.debug(f"Registered {aas_id} ({outcome.value}, {len(new_pairs)} links)")
        return outcome

    def get(self, aas_id: str) -> Optional[FrozenSet[NameValue]]:
        """Return the current asset links of an AAS, or None if unregistered."""
        validate_aas_id(aas_id)
        with self._state_lock:
            return self._records.get(aas_id)

    def delete(self, aas_id: str) -> bool:
        """
        Remove an AAS and all of its index entries.

        Returns:
            True if a record was removed, False if none was registered
        """
        validate_aas_id(aas_id)

        with self._locked(aas_id):
            with self._state_lock:
                if aas_id not in self._records:
                    return False

            self.backend.delete(aas_id)
            with self._state_lock:
                old_pairs = self._records.pop(aas_id)
                self._index.remove(aas_id, old_pairs)

        logger.debug(f"Deleted {aas_id} ({len(old_pairs)} links)")
        return True

    def search_ids(self, pairs: Iterable[NameValue]) -> List[str]:
        """Sorted ids of every AAS holding all of the given pairs, from one consistent view."""
        with self._state_lock:
            matches = self._index.intersect(pairs)
        return sorted(matches)

    def records(self) -> Dict[str, FrozenSet[NameValue]]:
        """Snapshot of every record."""
        with self._state_lock:
            return dict(self._records)

    def index_snapshot(self) -> Dict[NameValue, FrozenSet[str]]:
        """Snapshot of the link index."""
        with self._state_lock:
            return self._index.to_dict()

    def list_ids(self) -> List[str]:
        with self._state_lock:
            return sorted(self._records)

    def __contains__(self, aas_id: str) -> bool:
        with self._state_lock:
            return aas_id in self._records

    def __len__(self) -> int:
        with self._state_lock:
            return len(self._records)


def create_store(config: DiscoveryConfig) -> DescriptorStore:
    """Build a store on the backend named by the configuration."""
    if config.storage_backend == "sqlite":
        backend = SQLiteBackend(Path(config.storage_path) / "asset_links.db")
    elif config.storage_backend == "file":
        backend = FileBackend(config.storage_path)
    else:
        backend = MemoryBackend()
    return DescriptorStore(backend)
