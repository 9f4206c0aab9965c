# aasdiscovery/storage/files.py
"""
JSON file backend.

Each AAS id is stored at: store_dir / records / <sha3 of id>.json
The file name is a hash because AAS ids are URNs or URLs that are not
safe path components.
"""

import hashlib
import json
import logging
import os
import time
from pathlib import Path
from typing import Dict, FrozenSet

from ..errors import StorageError
from ..links import AssetLinkRecord, NameValue

logger = logging.getLogger(__name__)


def _id_hash(aas_id: str) -> str:
    return hashlib.sha3_256(aas_id.encode("utf-8")).hexdigest()


class FileBackend:
    """
    One JSON document per AAS id.

    Structure:
        store_dir/
            records/
                <id hash>.json   # {"aas_id", "pairs", "updated_at"}

    Writes go to a temporary file that is renamed over the record, so a
    crash never leaves a half-written record behind.
    """

    def __init__(self, store_dir: Path | str):
        self.store_dir = Path(store_dir)
        try:
            self._records_dir().mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create record directory under {self.store_dir}: {e}") from e

    def _records_dir(self) -> Path:
        return self.store_dir / "records"

    def _record_path(self, aas_id: str) -> Path:
        return self._records_dir() / f"{_id_hash(aas_id)}.json"

    def load(self) -> Dict[str, FrozenSet[NameValue]]:
        """Load every record from disk."""
        records = {}
        try:
            for path in sorted(self._records_dir().glob("*.json")):
                with open(path) as f:
                    record = AssetLinkRecord.from_dict(json.load(f))
                records[record.aas_id] = record.pairs
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise StorageError(f"Failed to load records from {self._records_dir()}: {e}") from e

        logger.debug(f"Loaded {len(records)} records from {self._records_dir()}")
        return records

    def write(self, aas_id: str, pairs: FrozenSet[NameValue]) -> None:
        data = AssetLinkRecord(aas_id=aas_id, pairs=pairs).to_dict()
        data["updated_at"] = time.time()

        path = self._record_path(aas_id)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write record for {aas_id}: {e}") from e

    def delete(self, aas_id: str) -> None:
        try:
            self._record_path(aas_id).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete record for {aas_id}: {e}") from e
