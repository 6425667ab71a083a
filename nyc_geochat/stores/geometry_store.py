"""Resolve stored geometries by content id.

Stored records come in two shapes: a direct record ``{"data": ...}`` and,
for rows written by older tooling, a one-element list ``[{"data": ...}]``.
Both are unwrapped here so callers only ever receive the inner geometry,
already stripped of non-standard envelope fields.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from nyc_geochat.core.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    UnexpectedError,
)
from nyc_geochat.models.geometry import Geometry
from nyc_geochat.utils.helpers import new_content_id, utc_now_iso, validate_uuid

if TYPE_CHECKING:
    from nyc_geochat.stores.base import GeoJSONRepository

logger = logging.getLogger("nyc_geochat.stores.geometry_store")

_STAGE = "geometry_store"


def unwrap_record(payload: Any) -> Any:
    """Return the ``data`` member of a stored record, unwrapping a list container."""
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if isinstance(payload, Mapping):
        return payload.get("data")
    return None


class GeometryStore:
    """Read-only resolution of geometries, plus ``save`` for new areas."""

    def __init__(self, repository: GeoJSONRepository) -> None:
        self._repository = repository

    async def resolve(self, geojson_id: str) -> Geometry:
        """Return the canonical geometry stored under *geojson_id*.

        Raises:
            InvalidArgumentError: If the id is empty or malformed.
            NotFoundError: If nothing (or an empty record) is stored.
            UpstreamUnavailableError: If storage cannot be reached.
            UnexpectedError: If the stored payload is not valid GeoJSON.
        """
        key = validate_uuid(geojson_id, field_name="GeoJSON id", stage=_STAGE)
        data = unwrap_record(await self._repository.get(key))
        if not data:
            msg = f"No GeoJSON data stored for id {key}"
            raise NotFoundError(msg, stage=_STAGE, code="GEOMETRY_NOT_FOUND")

        try:
            geometry = Geometry.from_geojson(data)
        except InvalidArgumentError as exc:
            logger.error("Stored geometry is malformed | id=%s | error=%s", key, exc.message)
            msg = f"Stored GeoJSON for id {key} is malformed"
            raise UnexpectedError(msg, stage=_STAGE, code="CORRUPT_GEOMETRY") from exc

        logger.debug("Geometry resolved | id=%s | type=%s", key, geometry.type)
        return geometry

    async def save(self, geometry: Geometry, *, metadata: dict[str, Any] | None = None) -> str:
        """Persist *geometry* under a new content id and return the id."""
        geojson_id = new_content_id()
        meta = {"created_at": utc_now_iso(), **(metadata or {})}
        await self._repository.put(geojson_id, geometry.to_dict(), meta)
        logger.info("Geometry saved | id=%s | type=%s", geojson_id, geometry.type)
        return geojson_id
