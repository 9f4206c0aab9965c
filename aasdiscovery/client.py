# aasdiscovery/client.py
"""
Client SDK for the discovery server.

Usage:
    client = DiscoveryClient("http://localhost:8080")

    client.register("urn:aas:pump-7", [NameValue("serialNumber", "SN-1234")])
    page = client.search([NameValue("serialNumber", "SN-1234")], limit=10)
    print(page.result)
"""

import json
from typing import Any, Iterable, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from . import codec
from .errors import (
    DiscoveryError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
)
from .links import NameValue
from .search import SearchPage


class DiscoveryClient:
    """
    Client for the discovery server.

    Args:
        base_url: Server URL (e.g., "http://localhost:8080")
        timeout: Request timeout in seconds
    """

    def __init__(self, base_url: str = "http://localhost:8080", timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, data: Any = None,
                 aas_id: Optional[str] = None) -> Any:
        """
        Make HTTP request to server.

        Returns decoded JSON, or None for empty bodies. aas_id names the
        record a 404 refers to.
        """
        url = f"{self.base_url}{path}"

        if data is not None:
            body = json.dumps(data).encode()
            headers = {"Content-Type": "application/json"}
        else:
            body = None
            headers = {}

        req = Request(url, data=body, headers=headers, method=method)

        try:
            with urlopen(req, timeout=self.timeout) as response:
                raw = response.read().decode()
                return json.loads(raw) if raw else None
        except HTTPError as e:
            raise self._error_from_response(e, aas_id) from e
        except URLError as e:
            raise ConnectionError(f"Failed to connect to server: {e}") from e

    @staticmethod
    def _error_from_response(e: HTTPError, aas_id: Optional[str] = None) -> DiscoveryError:
        error_body = e.read().decode()
        try:
            messages = json.loads(error_body).get("messages", [])
            message = messages[0]["text"] if messages else str(e)
        except (json.JSONDecodeError, AttributeError, KeyError, IndexError):
            message = f"HTTP {e.code}: {error_body}"

        if e.code == 413:
            return PayloadTooLargeError(message)
        if e.code == 400:
            return InvalidInputError(message)
        if e.code == 404 and aas_id is not None:
            return NotFoundError(aas_id)
        if e.code == 404:
            return DiscoveryError(message)
        return StorageError(message)

    def _shell_path(self, aas_id: str) -> str:
        return f"/lookup/shells/{codec.encode_id(aas_id)}"

    def health(self) -> bool:
        """Check if server is healthy."""
        try:
            result = self._request("GET", "/health")
            return result.get("status") == "ok"
        except (ConnectionError, DiscoveryError):
            return False

    def register(self, aas_id: str, pairs: Iterable[NameValue]) -> List[NameValue]:
        """Create or replace the asset links of an AAS. Returns the stored links."""
        data = self._request("POST", self._shell_path(aas_id), [p.to_dict() for p in pairs])
        return [NameValue.from_dict(p) for p in data]

    def fetch(self, aas_id: str) -> List[NameValue]:
        """
        Get the asset links of an AAS.

        Raises:
            NotFoundError: if the AAS is not registered
        """
        data = self._request("GET", self._shell_path(aas_id), aas_id=aas_id)
        return [NameValue.from_dict(p) for p in data]

    def delete(self, aas_id: str) -> None:
        """
        Delete the asset links of an AAS.

        Raises:
            NotFoundError: if the AAS is not registered
        """
        self._request("DELETE", self._shell_path(aas_id), aas_id=aas_id)

    def search(
        self,
        pairs: Iterable[NameValue],
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> SearchPage:
        """Get one page of AAS ids holding every given asset link."""
        params = {}
        if limit is not None:
            params["limit"] = limit
        if cursor:
            params["cursor"] = cursor
        path = "/lookup/shellsByAssetLink"
        if params:
            path += "?" + urlencode(params)

        data = self._request("POST", path, [p.to_dict() for p in pairs])
        return SearchPage.from_dict(data)

    def search_all(self, pairs: Iterable[NameValue], page_size: int = 100) -> List[str]:
        """Follow cursors until every matching AAS id has been collected."""
        pairs = list(pairs)
        ids: List[str] = []
        cursor = None
        while True:
            page = self.search(pairs, limit=page_size, cursor=cursor)
            ids.extend(page.result)
            if not page.cursor:
                return ids
            cursor = page.cursor


__all__ = ["DiscoveryClient", "SearchPage", "NameValue"]
