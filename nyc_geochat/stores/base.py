"""Repository abstract base classes for the storage collaborators.

The geometry store and the area registry never talk to storage directly;
they go through these interfaces so the Azure Blob implementation and
the in-memory implementation are interchangeable.

Implementations must raise ``UpstreamUnavailableError`` when the backend
cannot be reached and return ``None`` on a plain miss.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nyc_geochat.models.area import AreaRecord, ChatRecord


class GeoJSONRepository(abc.ABC):
    """Stored GeoJSON payloads keyed by content id."""

    @abc.abstractmethod
    async def get(self, geojson_id: str) -> Any:
        """Return the raw stored payload for *geojson_id*, or ``None``.

        The payload is returned exactly as stored: either a record
        ``{"id", "data", "metadata"}`` or a one-element list wrapping one.
        """

    @abc.abstractmethod
    async def put(
        self,
        geojson_id: str,
        data: dict[str, Any],
        metadata: dict[str, Any],
    ) -> None:
        """Store *data* under *geojson_id*, replacing any existing record."""


class ChatRepository(abc.ABC):
    """Chat metadata and per-chat areas."""

    @abc.abstractmethod
    async def get_chat(self, chat_id: str) -> ChatRecord | None:
        """Return chat metadata, or ``None`` if the chat does not exist."""

    @abc.abstractmethod
    async def get_area(self, chat_id: str) -> AreaRecord | None:
        """Return the area stored for *chat_id*, or ``None``."""

    @abc.abstractmethod
    async def put_area(self, record: AreaRecord) -> None:
        """Create or overwrite the area for ``record.chat_id``."""
