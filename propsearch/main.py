from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
from redis.asyncio import Redis
from structlog import get_logger

from propsearch.config import settings
from propsearch.core.logging import setup_logging
from propsearch.routers import indexes, properties
from propsearch.services.importer import ImportTracker, TransactionImporter
from propsearch.services.index_manager import InitializationMode
from propsearch.services.postcodes import PostcodeResolver
from propsearch.services.search import Searcher
from propsearch.services.search_client import SearchServiceClient
from propsearch.services.storage import TransactionStore

logger = get_logger(__name__)

app = FastAPI(title="Property Search Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
# find routes must be registered before the catch-all postcode route
app.include_router(properties.router)
app.include_router(indexes.router)


@app.on_event("startup")
async def startup_event():
    setup_logging()
    # Rate limiting needs Redis; run without it when unavailable
    try:
        if settings.REDIS_URL:
            redis = Redis.from_url(settings.REDIS_URL)
            await FastAPILimiter.init(redis)
    except Exception as e:
        logger.warning("Rate limiter disabled", error=str(e))

    resolver = PostcodeResolver.from_settings()
    searcher = Searcher(SearchServiceClient.from_settings(), TransactionStore.from_settings(), resolver.try_get_geo)
    app.state.resolver = resolver
    app.state.searcher = searcher
    app.state.importer = TransactionImporter.from_settings(searcher, resolver)
    app.state.import_tracker = ImportTracker()

    mode = InitializationMode.FORCE_RESET if settings.RESET_INDEX_ON_STARTUP else InitializationMode.ONLY_IF_NON_EXISTENT
    try:
        created = await searcher.initialize(mode)
        logger.info("Search index initialised", mode=mode.value, created=created)
    except Exception:
        # keep serving; /health reports the search service as down
        logger.exception("Search index initialisation failed", mode=mode.value)


@app.on_event("shutdown")
async def shutdown_event():
    state = app.state
    if hasattr(state, "searcher"):
        await state.searcher.client.aclose()
        await state.searcher.store.aclose()
    if hasattr(state, "importer"):
        await state.importer.aclose()
    if hasattr(state, "resolver"):
        await state.resolver.aclose()
    if FastAPILimiter.redis is not None:
        await FastAPILimiter.redis.aclose()


@app.get("/health", tags=["health"])
async def health():
    details = {"status": "ok"}
    searcher = getattr(app.state, "searcher", None)
    try:
        if searcher is None:
            raise RuntimeError("not initialised")
        details["document_count"] = await searcher.documents()
        details["search"] = "up"
    except Exception as e:
        details["status"] = "degraded"
        details["search"] = f"down: {str(e)}"
    # Config presence checks (no secrets exposed)
    details["config"] = {
        "search_key_set": settings.SEARCH_API_KEY not in (None, "", "your_search_key"),
        "storage_set": bool(settings.STORAGE_CONNECTION_STRING),
        "redis_url_set": bool(settings.REDIS_URL),
    }
    return details


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("propsearch.main:app", host="0.0.0.0", port=8000, reload=False)
