"""Parcel boundary operations.

- ``lookup_parcels_by_geometry_ids`` — ``POST /mappluto/geojson``: parcels
  associated with a list of stored geometry ids.
- ``query_area_parcels`` — ``POST /chat/{chat_id}/parcels``: parcels inside
  the chat's area of interest, filtered by attribute predicates.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from nyc_geochat.core.exceptions import (
    GeoChatError,
    InvalidArgumentError,
    NotFoundError,
    UnauthenticatedError,
    UnexpectedError,
)
from nyc_geochat.models.parcel import ParcelPredicates

if TYPE_CHECKING:
    from nyc_geochat.activities.spatial_query import SpatialQueryEngine
    from nyc_geochat.stores.area_registry import AreaRegistry
    from nyc_geochat.stores.geometry_store import GeometryStore

logger = logging.getLogger("nyc_geochat.activities.parcels")

_STAGE = "parcels"


def parse_predicates(raw: object) -> ParcelPredicates:
    """Validate request predicates (camelCase or snake_case keys).

    Raises:
        InvalidArgumentError: If *raw* is not an object or fails validation.
    """
    if raw is None:
        return ParcelPredicates()
    if not isinstance(raw, dict):
        msg = "predicates must be an object"
        raise InvalidArgumentError(msg, stage=_STAGE, code="INVALID_PREDICATES")
    try:
        return ParcelPredicates.model_validate(raw)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in e["loc"]) or "predicates" for e in exc.errors())
        msg = f"Invalid predicates: {fields}"
        raise InvalidArgumentError(msg, stage=_STAGE, code="INVALID_PREDICATES") from exc


async def lookup_parcels_by_geometry_ids(
    engine: SpatialQueryEngine,
    geometries: GeometryStore,
    body: dict[str, Any],
    *,
    limit: int,
) -> dict[str, Any]:
    """Return ``{"properties": [...]}`` for the supplied geometry ids.

    Raises:
        InvalidArgumentError: ``geojsonDataIds`` is missing or not a list.
        UnexpectedError: Any backend failure.
    """
    ids = body.get("geojsonDataIds")
    if not isinstance(ids, list):
        msg = "geojsonDataIds array is required"
        raise InvalidArgumentError(msg, stage=_STAGE, code="INVALID_GEOJSON_IDS")

    try:
        records = await engine.query_for_geometry_ids(geometries, ids, limit=limit)
    except GeoChatError as exc:
        logger.error("MapPLUTO lookup failed | ids=%d | error=%s", len(ids), exc.to_error_dict())
        raise UnexpectedError(
            "Failed to fetch MapPLUTO GeoJSON data", stage=_STAGE, code="MAPPLUTO_LOOKUP_FAILED"
        ) from exc

    logger.info("MapPLUTO lookup | ids=%d | records=%d", len(ids), len(records))
    return {"properties": [r.to_dict() for r in records]}


async def query_area_parcels(
    registry: AreaRegistry,
    engine: SpatialQueryEngine,
    chat_id: str,
    principal: str | None,
    body: dict[str, Any],
    *,
    default_limit: int,
) -> dict[str, Any]:
    """Run an area-scoped parcel query for a chat.

    Body: ``{"predicates": {...}, "limit": int}``, both optional.

    Raises:
        UnauthenticatedError: No principal on the request.
        InvalidArgumentError: Malformed chat id, predicates or limit.
        AccessDeniedError: Private chat read by a non-owner.
        NotFoundError: Chat missing, or no area (or area geometry) defined.
        UpstreamUnavailableError: The parcel backend is unreachable.
    """
    if not principal:
        raise UnauthenticatedError(stage=_STAGE)

    predicates = parse_predicates(body.get("predicates"))
    limit = body.get("limit", default_limit)

    area = await registry.require(chat_id, principal)
    if area is None:
        msg = "No area defined for this chat"
        raise NotFoundError(msg, stage=_STAGE, code="AREA_NOT_DEFINED")
    if area.geometry is None:
        msg = "Area geometry is missing"
        raise NotFoundError(msg, stage=_STAGE, code="AREA_GEOMETRY_MISSING")

    records = await engine.query(area.geometry, predicates, limit)
    logger.info(
        "Area parcel query | chat_id=%s | area=%s | records=%d",
        area.chat_id,
        area.name,
        len(records),
    )
    return {"parcels": [r.to_dict() for r in records], "count": len(records)}
