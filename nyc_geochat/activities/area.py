"""Chat area boundary operations: look up and define the area of interest.

Both operations require an authenticated principal.  Lookup maps the
registry's closed result variant onto the error taxonomy; define is
owner-only and overwrites any existing area.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from nyc_geochat.core.exceptions import (
    AccessDeniedError,
    InvalidArgumentError,
    NotFoundError,
    UnauthenticatedError,
)
from nyc_geochat.models.area import AreaForbidden, AreaFound, AreaInvalid, AreaNotFound

if TYPE_CHECKING:
    from nyc_geochat.stores.area_registry import AreaRegistry

logger = logging.getLogger("nyc_geochat.activities.area")

_STAGE = "area"


def _require_principal(principal: str | None) -> str:
    if not principal:
        raise UnauthenticatedError(stage=_STAGE)
    return principal


async def lookup_area(
    registry: AreaRegistry,
    chat_id: str,
    principal: str | None,
) -> dict[str, Any]:
    """Return ``{"area": ...}`` for ``GET /chat/{chat_id}/area``.

    ``area`` is ``None`` when the chat is readable but no area was defined.

    Raises:
        UnauthenticatedError: No principal on the request.
        InvalidArgumentError: Malformed chat id.
        AccessDeniedError: Private chat read by a non-owner.
        NotFoundError: Chat does not exist.
    """
    principal = _require_principal(principal)
    result = await registry.get(chat_id, principal)
    match result:
        case AreaFound(area=area):
            return {"area": area.to_dict() if area else None}
        case AreaInvalid(reason=reason):
            raise InvalidArgumentError(reason, stage=_STAGE, code="INVALID_CHAT_ID")
        case AreaNotFound():
            raise NotFoundError("Chat not found", stage=_STAGE, code="CHAT_NOT_FOUND")
        case AreaForbidden():
            raise AccessDeniedError(stage=_STAGE)
    msg = f"Unhandled area lookup result: {result!r}"
    raise TypeError(msg)


async def define_area(
    registry: AreaRegistry,
    chat_id: str,
    principal: str | None,
    body: dict[str, Any],
) -> dict[str, Any]:
    """Create or overwrite the chat area for ``POST /chat/{chat_id}/area``.

    Body: ``{"name", "summary", "geojson"}``, all required.
    """
    principal = _require_principal(principal)
    name = body.get("name")
    summary = body.get("summary")
    if not isinstance(name, str) or not isinstance(summary, str):
        msg = "Missing required fields"
        raise InvalidArgumentError(msg, stage=_STAGE, code="MISSING_FIELDS")

    area = await registry.define(
        chat_id,
        principal,
        name=name.strip(),
        summary=summary.strip(),
        geojson=body.get("geojson"),
    )
    return {"area": area.to_dict()}
