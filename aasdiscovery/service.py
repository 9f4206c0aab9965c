# aasdiscovery/service.py
"""
Discovery service: the entry point the transport layer calls.

Maps store outcomes to the documented result and error kinds. Absent
records surface as NotFoundError so they can never be mistaken for
invalid input or a storage failure.
"""

import logging
from typing import Iterable, List, Optional

from .errors import NotFoundError
from .links import NameValue, validate_aas_id
from .search import SearchEngine, SearchPage
from .store import DescriptorStore, RegisterOutcome

logger = logging.getLogger(__name__)


class DiscoveryService:
    """
    Register, fetch, delete and search asset links.

    Usage:
        service = DiscoveryService(DescriptorStore())
        service.register("urn:aas:1", [NameValue("plant", "P1")])
        page = service.search([NameValue("plant", "P1")], limit=10)
    """

    def __init__(self, store: DescriptorStore, default_limit: int = 100,
                 max_limit: Optional[int] = None):
        self.store = store
        self.engine = SearchEngine(store)
        self.default_limit = default_limit
        self.max_limit = max_limit

    def register(self, aas_id: str, pairs: Iterable[NameValue]) -> RegisterOutcome:
        """Create or fully replace the asset links of an AAS."""
        return self.store.register(aas_id, pairs)

    def fetch(self, aas_id: str) -> List[NameValue]:
        """Return the asset links of an AAS, sorted by (name, value)."""
        pairs = self.store.get(aas_id)
        if pairs is None:
            raise NotFoundError(aas_id)
        return sorted(pairs)

    def delete(self, aas_id: str) -> None:
        """Remove an AAS. Deleting an absent AAS raises NotFoundError."""
        validate_aas_id(aas_id)
        if not self.store.delete(aas_id):
            raise NotFoundError(aas_id)

    def search(
        self,
        pairs: Iterable[NameValue],
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> SearchPage:
        """
        Search for AAS ids holding every given asset link.

        Args:
            pairs: Asset links that must all be present
            limit: Page size (default_limit if None, clamped to max_limit)
            cursor: Cursor from the previous page
        """
        if limit is None:
            limit = self.default_limit
        if self.max_limit is not None and isinstance(limit, int) and limit > self.max_limit:
            limit = self.max_limit
        return self.engine.search(pairs, limit, cursor)
