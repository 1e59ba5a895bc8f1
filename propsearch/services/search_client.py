from typing import Any, Dict, Optional

import httpx
from structlog import get_logger

from propsearch.config import settings

logger = get_logger(__name__)


class SearchServiceError(Exception):
    """Raised when the search service answers with a non-success status."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class SearchServiceClient:
    """Thin async client over the managed search service's REST API.

    One instance owns one ``httpx.AsyncClient``; create it at startup and
    ``aclose`` it at shutdown.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        api_version: str = "2023-11-01",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_version = api_version
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"api-key": api_key, "Content-Type": "application/json"}

    @classmethod
    def from_settings(cls) -> "SearchServiceClient":
        return cls(settings.SEARCH_ENDPOINT, settings.SEARCH_API_KEY, settings.SEARCH_API_VERSION)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> httpx.Response:
        url = f"{self.endpoint}{path}"
        response = await self._http.request(
            method, url, params={"api-version": self.api_version}, json=json, headers=self._headers
        )
        if allow_not_found and response.status_code == 404:
            return response
        if response.status_code >= 400:
            logger.error("Search service request failed", method=method, path=path, status_code=response.status_code)
            raise SearchServiceError(
                f"{method} {path} failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    # indexes

    async def index_exists(self, name: str) -> bool:
        response = await self._request("GET", f"/indexes/{name}", allow_not_found=True)
        return response.status_code != 404

    async def create_index(self, definition: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/indexes", json=definition)
        return response.json()

    async def delete_index(self, name: str) -> None:
        await self._request("DELETE", f"/indexes/{name}", allow_not_found=True)

    # datasources

    async def create_datasource(self, definition: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/datasources", json=definition)
        return response.json()

    async def delete_datasource(self, name: str) -> None:
        await self._request("DELETE", f"/datasources/{name}", allow_not_found=True)

    # indexers

    async def create_indexer(self, definition: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/indexers", json=definition)
        return response.json()

    async def delete_indexer(self, name: str) -> None:
        await self._request("DELETE", f"/indexers/{name}", allow_not_found=True)

    async def indexer_status(self, name: str) -> Dict[str, Any]:
        response = await self._request("GET", f"/indexers/{name}/status")
        return response.json()

    # documents

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", f"/indexes/{index}/docs/search", json=body)
        return response.json()

    async def suggest(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", f"/indexes/{index}/docs/suggest", json=body)
        return response.json()

    async def count(self, index: str) -> int:
        response = await self._request("GET", f"/indexes/{index}/docs/$count")
        # the service answers with a bare integer, sometimes behind a BOM
        return int(response.text.strip().lstrip("\ufeff"))
