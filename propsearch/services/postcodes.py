from typing import Dict, Iterable, List, Optional

import httpx
from structlog import get_logger

from propsearch.config import settings
from propsearch.schemas.property import Geo
from propsearch.utils.retry import retry_api

logger = get_logger(__name__)

BULK_LIMIT = 100


def normalise_postcode(postcode: str) -> str:
    return " ".join(postcode.upper().split())


def _to_geo(result: Optional[dict]) -> Optional[Geo]:
    if not result:
        return None
    lat, lon = result.get("latitude"), result.get("longitude")
    if lat is None or lon is None:
        return None
    return Geo(lat=float(lat), long=float(lon))


class PostcodeResolver:
    """Resolve UK postcodes to coordinates using postcodes.io.

    Resolved postcodes are remembered for the life of the process; they make
    up the "postcodes" index reported by the stats endpoint.
    """

    def __init__(self, base_url: str, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0):
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._known: Dict[str, Geo] = {}

    @property
    def known_count(self) -> int:
        return len(self._known)

    @classmethod
    def from_settings(cls) -> "PostcodeResolver":
        return cls(settings.POSTCODES_URL)

    async def aclose(self) -> None:
        await self._http.aclose()

    @retry_api(tries=3, delay=1, backoff=2)
    async def try_get_geo(self, postcode: str) -> Optional[Geo]:
        """Coordinates for one postcode, or None when it is unknown or has no location."""
        postcode = normalise_postcode(postcode)
        if not postcode:
            return None
        if postcode in self._known:
            return self._known[postcode]
        response = await self._http.get(f"{self.base_url}/postcodes/{postcode}")
        if response.status_code == 404:
            logger.info("Postcode not found", postcode=postcode)
            return None
        if response.status_code != 200:
            logger.error("Postcode lookup failed", postcode=postcode, status_code=response.status_code)
            response.raise_for_status()
        geo = _to_geo(response.json().get("result"))
        if geo is not None:
            self._known[postcode] = geo
        return geo

    @retry_api(tries=3, delay=1, backoff=2)
    async def _lookup_batch(self, postcodes: List[str]) -> Dict[str, Geo]:
        response = await self._http.post(f"{self.base_url}/postcodes", json={"postcodes": postcodes})
        if response.status_code != 200:
            logger.error("Bulk postcode lookup failed", size=len(postcodes), status_code=response.status_code)
            response.raise_for_status()
        found = {}
        for entry in response.json().get("result") or []:
            geo = _to_geo(entry.get("result"))
            if geo is not None:
                found[normalise_postcode(entry.get("query", ""))] = geo
        return found

    async def lookup_many(self, postcodes: Iterable[str]) -> Dict[str, Geo]:
        """Resolve many postcodes in service-sized batches; unknown postcodes are left out."""
        unique = sorted({normalise_postcode(p) for p in postcodes if p and p.strip()})
        pending = [p for p in unique if p not in self._known]
        for start in range(0, len(pending), BULK_LIMIT):
            self._known.update(await self._lookup_batch(pending[start:start + BULK_LIMIT]))
        found = {p: self._known[p] for p in unique if p in self._known}
        logger.info("Resolved postcodes", requested=len(unique), resolved=len(found))
        return found
