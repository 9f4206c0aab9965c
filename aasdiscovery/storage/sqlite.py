# aasdiscovery/storage/sqlite.py
"""SQLite backend: one shell row per AAS id plus one row per asset link."""

import logging
import sqlite3
import time
from contextlib import closing
from pathlib import Path
from typing import Dict, FrozenSet, Set

from ..errors import StorageError
from ..links import NameValue

logger = logging.getLogger(__name__)


class SQLiteBackend:
    """
    Persist records in SQLite.

    A replace deletes the old link rows and inserts the new ones inside
    a single transaction, so a concurrent reader of the database sees
    either the old set or the new one.
    """

    def __init__(self, db_path: Path | str, timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_schema()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open SQLite database {self.db_path}: {e}") from e

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def _init_schema(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS shells (
                    aas_id TEXT PRIMARY KEY,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS asset_links (
                    aas_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (aas_id, name, value)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS ix_asset_links_name_value ON asset_links (name, value)"
            )

    def load(self) -> Dict[str, FrozenSet[NameValue]]:
        """Load every shell and its links."""
        records: Dict[str, Set[NameValue]] = {}
        try:
            with closing(self._connect()) as conn:
                for (aas_id,) in conn.execute("SELECT aas_id FROM shells"):
                    records[aas_id] = set()
                for aas_id, name, value in conn.execute(
                    "SELECT aas_id, name, value FROM asset_links"
                ):
                    # Links without a shell row are leftovers and are ignored
                    if aas_id in records:
                        records[aas_id].add(NameValue(name=name, value=value))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to load records from {self.db_path}: {e}") from e

        logger.debug(f"Loaded {len(records)} records from {self.db_path}")
        return {aas_id: frozenset(pairs) for aas_id, pairs in records.items()}

    def write(self, aas_id: str, pairs: FrozenSet[NameValue]) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    "INSERT OR REPLACE INTO shells (aas_id, updated_at) VALUES (?, ?)",
                    (aas_id, time.time()),
                )
                conn.execute("DELETE FROM asset_links WHERE aas_id = ?", (aas_id,))
                conn.executemany(
                    "INSERT INTO asset_links (aas_id, name, value) VALUES (?, ?, ?)",
                    [(aas_id, p.name, p.value) for p in sorted(pairs)],
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write record for {aas_id}: {e}") from e

    def delete(self, aas_id: str) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute("DELETE FROM asset_links WHERE aas_id = ?", (aas_id,))
                conn.execute("DELETE FROM shells WHERE aas_id = ?", (aas_id,))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete record for {aas_id}: {e}") from e
