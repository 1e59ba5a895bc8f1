from enum import Enum

from structlog import get_logger

from propsearch.schemas.index import (
    DATASOURCE_NAME,
    INDEX_NAME,
    INDEXER_NAME,
    datasource_definition,
    index_definition,
    indexer_definition,
)
from propsearch.services.search_client import SearchServiceClient
from propsearch.services.storage import TransactionStore

logger = get_logger(__name__)


class InitializationMode(str, Enum):
    FORCE_RESET = "ForceReset"
    ONLY_IF_NON_EXISTENT = "OnlyIfNonExistent"


async def initialize(mode: InitializationMode, client: SearchServiceClient, store: TransactionStore) -> bool:
    """
    Recreate the index, its blob datasource and its indexer when forced to or
    when the index is missing. Returns True if anything was recreated.

    The backing container is emptied as part of the reset. Nothing here is
    locked, so concurrent resets must be serialised by the caller.
    """
    if mode != InitializationMode.FORCE_RESET and await client.index_exists(INDEX_NAME):
        return False

    logger.info("Resetting search index", index=INDEX_NAME, mode=mode.value)
    await client.delete_index(INDEX_NAME)
    await client.create_index(index_definition())

    await store.ensure_exists()
    await store.clear()

    await client.delete_datasource(DATASOURCE_NAME)
    await client.create_datasource(datasource_definition(store.connection_string))

    await client.delete_indexer(INDEXER_NAME)
    await client.create_indexer(indexer_definition())
    logger.info("Search index ready", index=INDEX_NAME, datasource=DATASOURCE_NAME, indexer=INDEXER_NAME)
    return True
