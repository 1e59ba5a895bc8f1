"""Feed the search index from the Land Registry price paid data.

Rows are downloaded as CSV, normalised into ``SearchableProperty`` documents,
geo-tagged from their postcodes and written to blob storage as JSON arrays.
The search service's indexer picks the blobs up on its own schedule.
"""
import io
from typing import Dict, List, Optional

import httpx
import pandas as pd
from structlog import get_logger

from propsearch.config import settings
from propsearch.schemas.index import GeoPoint, SearchableProperty
from propsearch.schemas.property import (
    BUILD_TYPE_CODES,
    CONTRACT_TYPE_CODES,
    PROPERTY_TYPE_CODES,
    Geo,
    IndexStats,
    IndexStatus,
)
from propsearch.services.postcodes import PostcodeResolver, normalise_postcode
from propsearch.services.search import Searcher
from propsearch.utils.retry import retry_api

logger = get_logger(__name__)

PRICE_PAID_COLUMNS = [
    "transaction_id",
    "price",
    "date_of_transfer",
    "postcode",
    "property_type",
    "old_new",
    "duration",
    "paon",
    "saon",
    "street",
    "locality",
    "town",
    "district",
    "county",
    "ppd_category",
    "record_status",
]


def parse_price_paid(content: bytes) -> pd.DataFrame:
    """Parse a headerless price paid CSV, dropping deletion records."""
    frame = pd.read_csv(
        io.BytesIO(content),
        header=None,
        names=PRICE_PAID_COLUMNS,
        dtype=str,
        keep_default_na=False,
    )
    frame = frame[frame["record_status"].str.upper() != "D"].copy()
    frame["transaction_id"] = frame["transaction_id"].str.strip().str.strip("{}")
    frame["price"] = pd.to_numeric(frame["price"], errors="coerce")
    frame["date_of_transfer"] = pd.to_datetime(frame["date_of_transfer"], errors="coerce", utc=True)
    return frame.reset_index(drop=True)


def _text(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def to_document(row, geos: Dict[str, Geo]) -> SearchableProperty:
    postcode = _text(row["postcode"])
    geo = geos.get(normalise_postcode(postcode)) if postcode else None
    building = " ".join(part for part in (_text(row["saon"]), _text(row["paon"])) if part)
    price = row["price"]
    date = row["date_of_transfer"]
    return SearchableProperty(
        transaction_id=row["transaction_id"],
        price=None if pd.isna(price) else int(price),
        date_of_transfer=None if pd.isna(date) else date.to_pydatetime(),
        post_code=postcode,
        property_type=PROPERTY_TYPE_CODES.get((_text(row["property_type"]) or "").upper()),
        build=BUILD_TYPE_CODES.get((_text(row["old_new"]) or "").upper()),
        contract=CONTRACT_TYPE_CODES.get((_text(row["duration"]) or "").upper()),
        building=building or None,
        street=_text(row["street"]),
        locality=_text(row["locality"]),
        town=_text(row["town"]),
        district=_text(row["district"]),
        county=_text(row["county"]),
        geo=GeoPoint.create(geo.lat, geo.long) if geo is not None else None,
    )


def to_documents(frame: pd.DataFrame, geos: Dict[str, Geo]) -> List[dict]:
    return [
        to_document(row, geos).model_dump(by_alias=True, mode="json")
        for _, row in frame.iterrows()
    ]


class ImportTracker:
    """Remembers how many rows the running import expects, for progress reporting.

    Until the importer reports its uploads as done, the index may still hold
    the previous import's documents, so the import is never considered
    complete on document count alone.
    """

    def __init__(self):
        self.expected: Optional[int] = None
        self.uploading = False

    def start(self, rows: int) -> None:
        self.expected = rows
        self.uploading = True

    def uploaded(self) -> None:
        self.uploading = False

    def finish(self) -> None:
        self.expected = None
        self.uploading = False

    def stats(self, document_count: int, indexer_running: bool = False) -> IndexStats:
        if self.expected and (self.uploading or document_count < self.expected):
            percentage = min(int(document_count * 100 / self.expected), 100)
            return IndexStats(document_count=document_count, status=IndexStatus.INDEXING, percentage=percentage)
        self.finish()
        if indexer_running:
            return IndexStats(document_count=document_count, status=IndexStatus.INDEXING)
        return IndexStats(document_count=document_count, status=IndexStatus.IDLE)


class TransactionImporter:
    def __init__(
        self,
        searcher: Searcher,
        resolver: PostcodeResolver,
        source_url: str,
        batch_size: int = 1000,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.searcher = searcher
        self.resolver = resolver
        self.source_url = source_url
        self.batch_size = batch_size
        self._http = http_client or httpx.AsyncClient(timeout=120.0, follow_redirects=True)

    @classmethod
    def from_settings(cls, searcher: Searcher, resolver: PostcodeResolver) -> "TransactionImporter":
        return cls(searcher, resolver, settings.PRICE_PAID_DATA_URL, settings.IMPORT_BATCH_SIZE)

    async def aclose(self) -> None:
        await self._http.aclose()

    @retry_api(tries=3, delay=2, backoff=2)
    async def download(self) -> pd.DataFrame:
        response = await self._http.get(self.source_url)
        if response.status_code != 200:
            logger.error("Price paid download failed", url=self.source_url, status_code=response.status_code)
            response.raise_for_status()
        frame = parse_price_paid(response.content)
        logger.info("Downloaded price paid data", url=self.source_url, rows=len(frame))
        return frame

    async def ingest(self, frame: pd.DataFrame, tracker: Optional[ImportTracker] = None) -> int:
        """Reset the index and upload ``frame`` as JSON batches; returns the number of blobs written."""
        try:
            await self.searcher.clear()
            geos = await self.resolver.lookup_many(frame["postcode"].tolist())
            documents = to_documents(frame, geos)
            batches = 0
            for start in range(0, len(documents), self.batch_size):
                await self.searcher.store.upload_batch(
                    f"transactions-{batches:05d}.json", documents[start:start + self.batch_size]
                )
                batches += 1
        except Exception:
            logger.exception("Transaction import failed", rows=len(frame))
            if tracker is not None:
                tracker.finish()
            raise
        if tracker is not None:
            tracker.uploaded()
        logger.info("Uploaded transactions for indexing", rows=len(documents), batches=batches)
        return batches
