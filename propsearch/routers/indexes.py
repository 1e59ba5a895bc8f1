import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from structlog import get_logger

from propsearch.dependencies.rate_limit import import_rate_limit
from propsearch.dependencies.search import get_import_tracker, get_importer, get_resolver, get_searcher
from propsearch.schemas.property import IndexName, IndexStats, IndexStatus
from propsearch.services.importer import ImportTracker, TransactionImporter
from propsearch.services.postcodes import PostcodeResolver
from propsearch.services.search import Searcher
from propsearch.services.search_client import SearchServiceError

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["index"])


@router.get("/{index}/stats", response_model=IndexStats)
async def index_stats(
    index: IndexName,
    searcher: Searcher = Depends(get_searcher),
    tracker: ImportTracker = Depends(get_import_tracker),
    resolver: PostcodeResolver = Depends(get_resolver),
):
    if index == IndexName.POSTCODES:
        # postcodes resolve on demand; the index is whatever has been resolved so far
        return IndexStats(document_count=resolver.known_count, status=IndexStatus.IDLE)
    try:
        count = await searcher.documents()
        running = await searcher.indexer_running()
    except SearchServiceError as e:
        logger.error("Index stats unavailable", index=index.value, status_code=e.status_code, error=e.message)
        raise HTTPException(status_code=502, detail=f"Search service error ({e.status_code})")
    return tracker.stats(count, running)


@router.post("/{index}/import", response_model=int, dependencies=[Depends(import_rate_limit)])
async def import_index(
    index: IndexName,
    background_tasks: BackgroundTasks,
    importer: TransactionImporter = Depends(get_importer),
    tracker: ImportTracker = Depends(get_import_tracker),
):
    if index == IndexName.POSTCODES:
        logger.info("Postcodes are resolved on demand, nothing to import", index=index.value)
        return 0
    try:
        frame = await importer.download()
    except httpx.HTTPError as e:
        logger.error("Import download failed", index=index.value, error=str(e))
        raise HTTPException(status_code=502, detail="Could not download source data")
    rows = len(frame)
    tracker.start(rows)
    background_tasks.add_task(importer.ingest, frame, tracker)
    logger.info("Import started", index=index.value, rows=rows)
    return rows
