"""Azure Blob Storage repositories.

Layout inside the configured container::

    geojson/{id}.json       stored GeoJSON record (or legacy [record] wrapper)
    chats/{chat_id}.json    chat metadata
    areas/{chat_id}.json    area record referencing a geojson id

Uses the async ``azure.storage.blob.aio`` client so that storage reads are
suspension points for the calling function.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import ContentSettings

from nyc_geochat.core.constants import AREAS_PREFIX, CHATS_PREFIX, GEOJSON_PREFIX
from nyc_geochat.core.exceptions import (
    InvalidArgumentError,
    UnexpectedError,
    UpstreamUnavailableError,
)
from nyc_geochat.models.area import AreaRecord, ChatRecord
from nyc_geochat.stores.base import ChatRepository, GeoJSONRepository

if TYPE_CHECKING:
    from azure.storage.blob.aio import ContainerClient

logger = logging.getLogger("nyc_geochat.stores.blob")

_JSON_CONTENT = ContentSettings(content_type="application/json")


class _BlobJsonStore:
    """Read/write JSON documents in one blob container."""

    def __init__(self, container: ContainerClient, *, stage: str) -> None:
        self._container = container
        self._stage = stage

    async def read(self, blob_path: str) -> Any:
        blob = self._container.get_blob_client(blob_path)
        try:
            downloader = await blob.download_blob()
            raw = await downloader.readall()
        except ResourceNotFoundError:
            return None
        except AzureError as exc:
            msg = f"Blob read failed for {blob_path}: {exc}"
            raise UpstreamUnavailableError(msg, stage=self._stage, code="STORAGE_UNAVAILABLE") from exc

        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.error("Corrupt JSON document | blob=%s | error=%s", blob_path, exc)
            msg = f"Stored document {blob_path} is not valid JSON"
            raise UnexpectedError(msg, stage=self._stage, code="CORRUPT_DOCUMENT") from exc

    async def write(self, blob_path: str, payload: object) -> None:
        blob = self._container.get_blob_client(blob_path)
        try:
            await blob.upload_blob(
                json.dumps(payload),
                overwrite=True,
                content_settings=_JSON_CONTENT,
            )
        except AzureError as exc:
            msg = f"Blob write failed for {blob_path}: {exc}"
            raise UpstreamUnavailableError(msg, stage=self._stage, code="STORAGE_UNAVAILABLE") from exc
        logger.debug("Blob written | blob=%s", blob_path)


class BlobGeoJSONRepository(GeoJSONRepository):
    """Geometry records stored as ``geojson/{id}.json``."""

    def __init__(self, container: ContainerClient) -> None:
        self._store = _BlobJsonStore(container, stage="geometry_store")

    async def get(self, geojson_id: str) -> Any:
        return await self._store.read(f"{GEOJSON_PREFIX}/{geojson_id}.json")

    async def put(
        self,
        geojson_id: str,
        data: dict[str, Any],
        metadata: dict[str, Any],
    ) -> None:
        record = {"id": geojson_id, "data": data, "metadata": metadata}
        await self._store.write(f"{GEOJSON_PREFIX}/{geojson_id}.json", record)


class BlobChatRepository(ChatRepository):
    """Chat metadata and areas stored as JSON blobs."""

    def __init__(self, container: ContainerClient) -> None:
        self._store = _BlobJsonStore(container, stage="area_registry")

    async def get_chat(self, chat_id: str) -> ChatRecord | None:
        data = await self._store.read(f"{CHATS_PREFIX}/{chat_id}.json")
        if data is None:
            return None
        if not isinstance(data, dict):
            msg = f"Chat document for {chat_id} must be an object"
            raise UnexpectedError(msg, stage="area_registry", code="CORRUPT_DOCUMENT")
        try:
            return ChatRecord.from_dict(data)
        except InvalidArgumentError as exc:
            raise UnexpectedError(
                exc.message, stage="area_registry", code="CORRUPT_DOCUMENT"
            ) from exc

    async def get_area(self, chat_id: str) -> AreaRecord | None:
        data = await self._store.read(f"{AREAS_PREFIX}/{chat_id}.json")
        if data is None:
            return None
        if not isinstance(data, dict):
            msg = f"Area document for {chat_id} must be an object"
            raise UnexpectedError(msg, stage="area_registry", code="CORRUPT_DOCUMENT")
        return AreaRecord.from_dict(data)

    async def put_area(self, record: AreaRecord) -> None:
        await self._store.write(f"{AREAS_PREFIX}/{record.chat_id}.json", record.to_dict())
