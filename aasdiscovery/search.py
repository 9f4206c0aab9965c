# aasdiscovery/search.py
"""
Intersection search with stateless cursor paging.

Matches are sorted by AAS id. A cursor is the encoded id of the next
unseen match, so paging needs no server-side state: a page starts at the
first match >= the cursor id. If that id was deleted between calls the
page resumes at its successor.
"""

import bisect
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from . import codec
from .errors import InvalidInputError
from .links import NameValue, normalize_pairs
from .store import DescriptorStore

logger = logging.getLogger(__name__)


@dataclass
class SearchPage:
    """One page of matching AAS ids."""
    result: List[str] = field(default_factory=list)
    cursor: Optional[str] = None  # None when there are no further results

    def to_dict(self) -> Dict[str, Any]:
        paging = {}
        if self.cursor:
            paging["cursor"] = self.cursor
        return {"result": self.result, "paging_metadata": paging}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchPage":
        paging = data.get("paging_metadata") or {}
        return cls(result=list(data.get("result", [])), cursor=paging.get("cursor") or None)


def encode_cursor(aas_id: str) -> str:
    return codec.encode_id(aas_id)


def decode_cursor(cursor: str) -> str:
    """Decode a cursor into the AAS id it names."""
    try:
        return codec.decode_id(cursor)
    except InvalidInputError as e:
        raise InvalidInputError(f"Malformed cursor: {cursor!r}") from e


def paginate(matches: List[str], limit: int, cursor: Optional[str] = None) -> SearchPage:
    """
    Slice one page out of a sorted match list.

    Args:
        matches: Sorted, duplicate-free AAS ids
        limit: Maximum number of ids to return (0 returns an empty page)
        cursor: Cursor from a previous page, or None to start at the beginning
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidInputError(f"Limit must be an integer, got {limit!r}")
    if limit < 0:
        raise InvalidInputError(f"Limit must not be negative, got {limit}")

    start = 0
    if cursor:
        start = bisect.bisect_left(matches, decode_cursor(cursor))

    end = start + limit
    page = matches[start:end]
    next_cursor = encode_cursor(matches[end]) if end < len(matches) else None
    return SearchPage(result=page, cursor=next_cursor)


class SearchEngine:
    """Read-only search over a DescriptorStore's link index."""

    def __init__(self, store: DescriptorStore):
        self.store = store

    def search(
        self,
        pairs: Iterable[NameValue],
        limit: int,
        cursor: Optional[str] = None,
    ) -> SearchPage:
        """
        Find the AAS ids holding every given asset link.

        An empty query matches nothing. Extra links on a record do not
        prevent a match.

        Raises:
            InvalidInputError: negative limit, malformed cursor, or a
                pair with an empty name/value
        """
        query = normalize_pairs(pairs)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidInputError(f"Limit must be a non-negative integer, got {limit!r}")
        if cursor:
            decode_cursor(cursor)

        if not query:
            return SearchPage()

        matches = self.store.search_ids(query)
        page = paginate(matches, limit, cursor)
        logger.debug(
            f"Search over {len(query)} links matched {len(matches)} shells, "
            f"returning {len(page.result)}"
        )
        return page
