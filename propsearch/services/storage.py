import asyncio
import json
from typing import Any, Dict, List

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import ContainerClient
from structlog import get_logger

from propsearch.config import settings
from propsearch.schemas.index import CONTAINER_NAME

logger = get_logger(__name__)


class TransactionStore:
    """Blob container holding JSON-array batches of transactions for the indexer."""

    def __init__(self, container: ContainerClient, connection_string: str):
        self._container = container
        self.connection_string = connection_string

    @classmethod
    def from_connection_string(cls, connection_string: str, container_name: str = CONTAINER_NAME) -> "TransactionStore":
        container = ContainerClient.from_connection_string(connection_string, container_name=container_name)
        return cls(container, connection_string)

    @classmethod
    def from_settings(cls) -> "TransactionStore":
        return cls.from_connection_string(settings.STORAGE_CONNECTION_STRING)

    async def aclose(self) -> None:
        await self._container.close()

    async def ensure_exists(self) -> None:
        if await self._container.exists():
            return
        try:
            await self._container.create_container()
        except ResourceExistsError:
            pass

    async def list_blob_names(self) -> List[str]:
        return [blob.name async for blob in self._container.list_blobs()]

    async def clear(self) -> int:
        """Delete every blob in the container concurrently; any failure fails the whole clear."""
        names = await self.list_blob_names()
        tasks = [asyncio.ensure_future(self._container.delete_blob(name)) for name in names]
        if tasks:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            failures = [task.exception() for task in done if task.exception() is not None]
            if failures:
                logger.error("Clearing transaction container failed", blobs=len(names), failures=len(failures))
                raise failures[0]
        logger.info("Cleared transaction container", blobs=len(names))
        return len(names)

    async def upload_batch(self, name: str, documents: List[Dict[str, Any]]) -> None:
        await self._container.upload_blob(
            name,
            json.dumps(documents),
            overwrite=True,
            content_settings=ContentSettings(content_type="application/json"),
        )
