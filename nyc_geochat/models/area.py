"""Chat metadata, areas of interest and the area lookup result variant.

An ``Area`` is the user-defined polygon that scopes later parcel queries
within one conversation.  There is at most one area per chat; defining a
new one overwrites the previous record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nyc_geochat.core.constants import VISIBILITY_PRIVATE, VISIBILITY_PUBLIC
from nyc_geochat.core.exceptions import InvalidArgumentError
from nyc_geochat.models.geometry import Geometry


@dataclass(frozen=True, slots=True)
class ChatRecord:
    """Metadata of a chat, as owned by the chat store collaborator.

    Attributes:
        id: Chat identifier (UUID string).
        user_id: Identifier of the user who created the chat.
        visibility: ``"public"`` or ``"private"``.
        title: Chat title.
    """

    id: str
    user_id: str
    visibility: str = VISIBILITY_PRIVATE
    title: str = ""

    @property
    def is_private(self) -> bool:
        return self.visibility != VISIBILITY_PUBLIC

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "visibility": self.visibility,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatRecord:
        """Deserialise a stored chat record.

        Raises:
            InvalidArgumentError: If ``id`` or ``user_id`` is missing, or
                ``visibility`` is not a known value.
        """
        chat_id = str(data.get("id", "")).strip()
        user_id = str(data.get("user_id", data.get("userId", ""))).strip()
        if not chat_id or not user_id:
            msg = "Chat record requires non-empty id and user_id"
            raise InvalidArgumentError(msg, stage="chat_store", code="INVALID_CHAT_RECORD")
        visibility = str(data.get("visibility", VISIBILITY_PRIVATE))
        if visibility not in (VISIBILITY_PUBLIC, VISIBILITY_PRIVATE):
            msg = f"Unknown chat visibility: {visibility!r}"
            raise InvalidArgumentError(msg, stage="chat_store", code="INVALID_CHAT_RECORD")
        return cls(
            id=chat_id,
            user_id=user_id,
            visibility=visibility,
            title=str(data.get("title", "")),
        )


@dataclass(frozen=True, slots=True)
class AreaRecord:
    """Stored form of an area: a reference to its geometry, not the geometry."""

    chat_id: str
    name: str
    summary: str
    geojson_data_id: str
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "chat_id": self.chat_id,
            "name": self.name,
            "summary": self.summary,
            "geojson_data_id": self.geojson_data_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AreaRecord:
        return cls(
            chat_id=str(data.get("chat_id", data.get("chatId", ""))),
            name=str(data.get("name", "")),
            summary=str(data.get("summary", "")),
            geojson_data_id=str(data.get("geojson_data_id", data.get("geojsonDataId", ""))),
            created_at=str(data.get("created_at", "")),
            updated_at=str(data.get("updated_at", "")),
        )


@dataclass(frozen=True, slots=True)
class Area:
    """An area of interest joined with its geometry.

    ``geometry`` is ``None`` when the referenced geometry record is missing,
    mirroring a left join between the area and geometry tables.
    """

    chat_id: str
    name: str
    summary: str
    geojson_data_id: str
    geometry: Geometry | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, object]:
        """Serialise for the ``GET /chat/{id}/area`` response body."""
        return {
            "chatId": self.chat_id,
            "name": self.name,
            "summary": self.summary,
            "geojson": self.geometry.to_dict() if self.geometry else None,
            "geojsonDataId": self.geojson_data_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# ---------------------------------------------------------------------------
# Lookup result variant
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AreaFound:
    """Access granted. ``area`` is ``None`` when no area was defined yet."""

    area: Area | None


@dataclass(frozen=True, slots=True)
class AreaNotFound:
    """The chat itself does not exist."""

    chat_id: str


@dataclass(frozen=True, slots=True)
class AreaForbidden:
    """The chat is private and the principal is not its owner."""

    chat_id: str


@dataclass(frozen=True, slots=True)
class AreaInvalid:
    """The chat id is empty or malformed."""

    chat_id: str
    reason: str


AreaLookup = AreaFound | AreaNotFound | AreaForbidden | AreaInvalid
