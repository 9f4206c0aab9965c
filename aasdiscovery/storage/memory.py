# aasdiscovery/storage/memory.py
"""Non-durable backend: records live only in the store's own memory."""

from typing import Dict, FrozenSet

from ..links import NameValue


class MemoryBackend:
    """Backend that persists nothing. Useful for tests and throwaway runs."""

    def load(self) -> Dict[str, FrozenSet[NameValue]]:
        return {}

    def write(self, aas_id: str, pairs: FrozenSet[NameValue]) -> None:
        pass

    def delete(self, aas_id: str) -> None:
        pass
