# aasdiscovery/storage/__init__.py
"""
Durable backends for the descriptor store.

Each backend persists one record per AAS id and exposes the same three
operations:

    load()                  -> {aas_id: frozenset of NameValue}
    write(aas_id, pairs)    -> replace the record for aas_id
    delete(aas_id)          -> drop the record for aas_id

Backends raise StorageError on any failure and never retry. Callers
serialize writes per AAS id.
"""

from .files import FileBackend
from .memory import MemoryBackend
from .sqlite import SQLiteBackend

__all__ = ["FileBackend", "MemoryBackend", "SQLiteBackend"]
