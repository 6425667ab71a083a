"""Per-chat area of interest behind the chat access gate.

Every read of chat-scoped geometry goes through ``_check_access`` before
any data is returned: a private chat is only readable by its owner.
Defining an area is owner-only regardless of visibility.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from nyc_geochat.core.exceptions import (
    AccessDeniedError,
    InvalidArgumentError,
    NotFoundError,
    UnexpectedError,
)
from nyc_geochat.models.area import (
    Area,
    AreaFound,
    AreaForbidden,
    AreaInvalid,
    AreaLookup,
    AreaNotFound,
    AreaRecord,
    ChatRecord,
)
from nyc_geochat.models.geometry import Geometry
from nyc_geochat.utils.helpers import utc_now_iso, validate_uuid

if TYPE_CHECKING:
    from nyc_geochat.stores.base import ChatRepository
    from nyc_geochat.stores.geometry_store import GeometryStore

logger = logging.getLogger("nyc_geochat.stores.area_registry")

_STAGE = "area_registry"


def _check_access(chat: ChatRecord, principal: str | None) -> bool:
    """Return ``True`` if *principal* may read chat-scoped data of *chat*."""
    if not chat.is_private:
        return True
    return principal is not None and principal == chat.user_id


class AreaRegistry:
    """Maps a chat id to at most one active area."""

    def __init__(self, chats: ChatRepository, geometries: GeometryStore) -> None:
        self._chats = chats
        self._geometries = geometries

    async def get(self, chat_id: str, principal: str | None) -> AreaLookup:
        """Look up the area of *chat_id* on behalf of *principal*.

        Returns a closed result variant; ``AreaFound(None)`` means the chat
        is readable but no area has been defined yet.  A missing or corrupt
        stored geometry joins as ``geometry=None``.

        Raises:
            UpstreamUnavailableError: If chat or geometry storage is unreachable.
        """
        try:
            key = validate_uuid(chat_id, field_name="Chat ID", stage=_STAGE)
        except InvalidArgumentError as exc:
            return AreaInvalid(chat_id=str(chat_id), reason=exc.message)

        chat = await self._chats.get_chat(key)
        if chat is None:
            logger.info("Area lookup | chat_id=%s | status=chat_not_found", key)
            return AreaNotFound(chat_id=key)

        if not _check_access(chat, principal):
            logger.warning(
                "Area lookup denied | chat_id=%s | principal=%s",
                key,
                principal or "<none>",
            )
            return AreaForbidden(chat_id=key)

        record = await self._chats.get_area(key)
        if record is None:
            logger.info("Area lookup | chat_id=%s | status=no_area", key)
            return AreaFound(area=None)

        area = await self._join_geometry(record)
        logger.info(
            "Area lookup | chat_id=%s | status=found | geometry=%s",
            key,
            area.geometry.type if area.geometry else "missing",
        )
        return AreaFound(area=area)

    async def require(self, chat_id: str, principal: str | None) -> Area | None:
        """Like ``get`` but raise the matching taxonomy error on failure.

        Raises:
            InvalidArgumentError: Malformed chat id.
            NotFoundError: Chat does not exist.
            AccessDeniedError: Private chat, principal is not the owner.
        """
        result = await self.get(chat_id, principal)
        match result:
            case AreaFound(area=area):
                return area
            case AreaInvalid(reason=reason):
                raise InvalidArgumentError(reason, stage=_STAGE, code="INVALID_CHAT_ID")
            case AreaNotFound(chat_id=key):
                raise NotFoundError(f"Chat {key} not found", stage=_STAGE, code="CHAT_NOT_FOUND")
            case AreaForbidden():
                raise AccessDeniedError(stage=_STAGE)
        msg = f"Unhandled area lookup result: {result!r}"
        raise TypeError(msg)

    async def define(
        self,
        chat_id: str,
        principal: str | None,
        *,
        name: str,
        summary: str,
        geojson: Any,
    ) -> Area:
        """Create or overwrite the area of *chat_id*.

        Raises:
            InvalidArgumentError: Malformed chat id, missing fields, or a
                geometry without any polygon.
            NotFoundError: Chat does not exist.
            AccessDeniedError: Principal is not the chat owner.
        """
        key = validate_uuid(chat_id, field_name="Chat ID", stage=_STAGE)
        if not name or not summary or not geojson:
            msg = "Missing required fields"
            raise InvalidArgumentError(msg, stage=_STAGE, code="MISSING_FIELDS")

        geometry = Geometry.from_geojson(geojson)
        if not geometry.polygons():
            msg = f"Area geometry must contain a polygon, got {geometry.type}"
            raise InvalidArgumentError(msg, stage=_STAGE, code="AREA_NOT_POLYGONAL")

        chat = await self._chats.get_chat(key)
        if chat is None:
            raise NotFoundError(f"Chat {key} not found", stage=_STAGE, code="CHAT_NOT_FOUND")
        if principal is None or principal != chat.user_id:
            logger.warning(
                "Area define denied | chat_id=%s | principal=%s",
                key,
                principal or "<none>",
            )
            raise AccessDeniedError(stage=_STAGE)

        geojson_id = await self._geometries.save(
            geometry, metadata={"type": "area", "chat_id": key, "name": name}
        )

        existing = await self._chats.get_area(key)
        now = utc_now_iso()
        record = AreaRecord(
            chat_id=key,
            name=name,
            summary=summary,
            geojson_data_id=geojson_id,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        await self._chats.put_area(record)

        logger.info(
            "Area %s | chat_id=%s | geojson_id=%s | name=%s",
            "updated" if existing else "created",
            key,
            geojson_id,
            name,
        )
        return Area(
            chat_id=key,
            name=name,
            summary=summary,
            geojson_data_id=geojson_id,
            geometry=geometry,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    async def _join_geometry(self, record: AreaRecord) -> Area:
        geometry: Geometry | None = None
        if record.geojson_data_id:
            try:
                geometry = await self._geometries.resolve(record.geojson_data_id)
            except (NotFoundError, InvalidArgumentError):
                logger.warning(
                    "Area geometry missing | chat_id=%s | geojson_id=%s",
                    record.chat_id,
                    record.geojson_data_id,
                )
            except UnexpectedError as exc:
                logger.error(
                    "Area geometry unreadable | chat_id=%s | geojson_id=%s | code=%s",
                    record.chat_id,
                    record.geojson_data_id,
                    exc.code,
                )
        return Area(
            chat_id=record.chat_id,
            name=record.name,
            summary=record.summary,
            geojson_data_id=record.geojson_data_id,
            geometry=geometry,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
