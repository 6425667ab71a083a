"""In-memory repositories for local development and tests."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from nyc_geochat.stores.base import ChatRepository, GeoJSONRepository

if TYPE_CHECKING:
    from nyc_geochat.models.area import AreaRecord, ChatRecord


class InMemoryGeoJSONRepository(GeoJSONRepository):
    """Dict-backed geometry repository.

    ``seed_raw`` stores an arbitrary payload verbatim, which lets callers
    reproduce legacy shapes such as a one-element list wrapper.
    """

    def __init__(self) -> None:
        self._records: dict[str, Any] = {}

    async def get(self, geojson_id: str) -> Any:
        return copy.deepcopy(self._records.get(geojson_id))

    async def put(
        self,
        geojson_id: str,
        data: dict[str, Any],
        metadata: dict[str, Any],
    ) -> None:
        self._records[geojson_id] = {
            "id": geojson_id,
            "data": copy.deepcopy(data),
            "metadata": dict(metadata),
        }

    def seed_raw(self, geojson_id: str, payload: Any) -> None:
        self._records[geojson_id] = copy.deepcopy(payload)

    def __len__(self) -> int:
        return len(self._records)


class InMemoryChatRepository(ChatRepository):
    """Dict-backed chat and area repository."""

    def __init__(self) -> None:
        self._chats: dict[str, ChatRecord] = {}
        self._areas: dict[str, AreaRecord] = {}

    async def get_chat(self, chat_id: str) -> ChatRecord | None:
        return self._chats.get(chat_id)

    async def get_area(self, chat_id: str) -> AreaRecord | None:
        return self._areas.get(chat_id)

    async def put_area(self, record: AreaRecord) -> None:
        self._areas[record.chat_id] = record

    def add_chat(self, chat: ChatRecord) -> None:
        self._chats[chat.id] = chat
