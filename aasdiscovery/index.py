# aasdiscovery/index.py
"""
Inverted index from asset link to the AAS ids holding it.

The index is derived from the descriptor store and never holds a pair
the store does not hold. It is not thread-safe on its own; the store
mutates and reads it under its state lock.
"""

from typing import Dict, FrozenSet, Iterable, Mapping, Set

from .links import NameValue


class LinkIndex:
    """
    Maps each NameValue to the set of AAS ids currently holding it.

    Posting sets that become empty are dropped, so every key in the
    index is held by at least one registered AAS.
    """

    def __init__(self):
        self._postings: Dict[NameValue, Set[str]] = {}

    @classmethod
    def from_records(cls, records: Mapping[str, Iterable[NameValue]]) -> "LinkIndex":
        """Rebuild an index by replaying every stored record."""
        index = cls()
        for aas_id, pairs in records.items():
            index.add(aas_id, pairs)
        return index

    def add(self, aas_id: str, pairs: Iterable[NameValue]) -> None:
        for pair in pairs:
            self._postings.setdefault(pair, set()).add(aas_id)

    def remove(self, aas_id: str, pairs: Iterable[NameValue]) -> None:
        for pair in pairs:
            ids = self._postings.get(pair)
            if ids is None:
                continue
            ids.discard(aas_id)
            if not ids:
                del self._postings[pair]

    def replace(self, aas_id: str, old: FrozenSet[NameValue], new: FrozenSet[NameValue]) -> None:
        """Move aas_id from its old pair set to the new one, touching only the difference."""
        self.remove(aas_id, old - new)
        self.add(aas_id, new - old)

    def ids_for(self, pair: NameValue) -> FrozenSet[str]:
        return frozenset(self._postings.get(pair, ()))

    def intersect(self, pairs: Iterable[NameValue]) -> Set[str]:
        """
        Return the AAS ids holding every one of the given pairs.

        Starts from the smallest posting set and stops early once the
        candidate set is empty. No pairs means no constraint to match,
        which yields an empty result.
        """
        postings = []
        for pair in set(pairs):
            ids = self._postings.get(pair)
            if not ids:
                return set()
            postings.append(ids)

        if not postings:
            return set()

        postings.sort(key=len)
        result = set(postings[0])
        for ids in postings[1:]:
            result &= ids
            if not result:
                break
        return result

    def pairs(self) -> FrozenSet[NameValue]:
        return frozenset(self._postings)

    def to_dict(self) -> Dict[NameValue, FrozenSet[str]]:
        return {pair: frozenset(ids) for pair, ids in self._postings.items()}

    def __len__(self) -> int:
        return len(self._postings)

    def __contains__(self, pair: NameValue) -> bool:
        return pair in self._postings
