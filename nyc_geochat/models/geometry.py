"""Canonical GeoJSON geometry value.

Geometries arrive from three places: the blob-backed geometry store, tool
outputs embedded in chat messages, and HTTP request bodies.  Some upstream
providers (ArcGIS in particular) attach members outside
RFC 7946, such as a ``crs`` annotation or a top-level ``properties``
block on a ``FeatureCollection``.  Everything is normalised here on
ingress so consumers only ever see canonical members.

All coordinates are WGS 84 (EPSG:4326); no reprojection is performed.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nyc_geochat.core.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from shapely.geometry.base import BaseGeometry
    from shapely.geometry.polygon import Polygon

# ---------------------------------------------------------------------------
# Canonical members per GeoJSON type (RFC 7946)
# ---------------------------------------------------------------------------

_COORDINATE_TYPES = frozenset(
    {"Point", "MultiPoint", "LineString", "MultiLineString", "Polygon", "MultiPolygon"}
)

_CANONICAL_KEYS: dict[str, frozenset[str]] = {
    **{t: frozenset({"type", "coordinates", "bbox"}) for t in _COORDINATE_TYPES},
    "GeometryCollection": frozenset({"type", "geometries", "bbox"}),
    "Feature": frozenset({"type", "id", "geometry", "properties", "bbox"}),
    "FeatureCollection": frozenset({"type", "features", "bbox"}),
}

GEOJSON_TYPES = frozenset(_CANONICAL_KEYS)


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def strip_envelope(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop the ``crs`` and top-level ``properties`` envelope fields.

    ``properties`` is only kept on a ``Feature``, where it is a standard
    member.  Every other key is preserved as-is and the input is not
    mutated.
    """
    cleaned = {k: v for k, v in data.items() if k != "crs"}
    if cleaned.get("type") != "Feature":
        cleaned.pop("properties", None)
    return cleaned


def normalize_geojson(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a deep copy of *data* holding only canonical GeoJSON members.

    Raises:
        InvalidArgumentError: If *data* is not a well-formed GeoJSON object.
    """
    if not is_geojson(data):
        msg = "Value is not a well-formed GeoJSON object"
        raise InvalidArgumentError(msg, stage="geometry", code="INVALID_GEOJSON")
    allowed = _CANONICAL_KEYS[data["type"]]
    return copy.deepcopy({k: v for k, v in data.items() if k in allowed})


def is_geojson(data: object) -> bool:
    """Structural GeoJSON check.

    Verifies member presence and container types only; coordinate
    values are validated lazily by shapely when a geometry is used
    spatially.
    """
    if not isinstance(data, Mapping):
        return False
    geo_type = data.get("type")
    if not isinstance(geo_type, str):
        return False
    if geo_type in _COORDINATE_TYPES:
        coords = data.get("coordinates")
        return isinstance(coords, list) and len(coords) > 0
    if geo_type == "GeometryCollection":
        geometries = data.get("geometries")
        return isinstance(geometries, list) and all(is_geojson(g) for g in geometries)
    if geo_type == "Feature":
        geometry = data.get("geometry")
        properties = data.get("properties")
        return (geometry is None or is_geojson(geometry)) and (
            properties is None or isinstance(properties, Mapping)
        )
    if geo_type == "FeatureCollection":
        features = data.get("features")
        return isinstance(features, list) and all(
            isinstance(f, Mapping) and f.get("type") == "Feature" and is_geojson(f)
            for f in features
        )
    return False


def has_geometry(data: object) -> bool:
    """Return ``True`` when *data* is a non-empty, well-formed GeoJSON object.

    ``{}``, ``None`` and structurally broken payloads all count as
    "no geometry".
    """
    return isinstance(data, Mapping) and len(data) > 0 and is_geojson(data)


# ---------------------------------------------------------------------------
# Geometry value
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Geometry:
    """An immutable, canonical GeoJSON value.

    The wrapped payload is a private deep copy; ``to_dict()`` hands out a
    fresh copy so callers can never mutate a stored geometry in place.

    Attributes:
        type: GeoJSON ``type`` member (``Polygon``, ``FeatureCollection`` ...).
    """

    type: str
    _data: dict[str, Any] = field(repr=False, compare=True)

    @classmethod
    def from_geojson(cls, data: object) -> Geometry:
        """Build a ``Geometry`` from a raw GeoJSON mapping.

        Envelope fields are stripped and only canonical members retained.

        Raises:
            InvalidArgumentError: If *data* is not well-formed GeoJSON.
        """
        if not isinstance(data, Mapping):
            msg = f"GeoJSON must be an object, got {type(data).__name__}"
            raise InvalidArgumentError(msg, stage="geometry", code="INVALID_GEOJSON")
        canonical = normalize_geojson(data)
        return cls(type=str(canonical["type"]), _data=canonical)

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the canonical GeoJSON mapping."""
        return copy.deepcopy(self._data)

    # ------------------------------------------------------------------
    # shapely views
    # ------------------------------------------------------------------

    def to_shapely(self) -> BaseGeometry:
        """Return the shapely geometry for this value.

        Features contribute their ``geometry`` member; collections become a
        ``GeometryCollection`` of their members.

        Raises:
            InvalidArgumentError: If the coordinates cannot be interpreted.
        """
        from shapely.geometry import GeometryCollection, shape

        try:
            if self.type == "Feature":
                inner = self._data.get("geometry")
                return shape(inner) if inner else GeometryCollection()
            if self.type == "FeatureCollection":
                return GeometryCollection(
                    [shape(f["geometry"]) for f in self._data["features"] if f.get("geometry")]
                )
            return shape(self._data)
        except (TypeError, ValueError, KeyError, IndexError, AttributeError) as exc:
            msg = f"Invalid {self.type} coordinates: {exc}"
            raise InvalidArgumentError(msg, stage="geometry", code="INVALID_COORDINATES") from exc

    def polygons(self) -> list[Polygon]:
        """Return every polygon contained in this geometry, in order."""
        return list(_iter_polygons(self.to_shapely()))


def _iter_polygons(geom: BaseGeometry) -> Iterator[Polygon]:
    """Yield polygons from an arbitrarily nested shapely geometry."""
    if geom.is_empty:
        return
    if geom.geom_type == "Polygon":
        yield geom  # type: ignore[misc]
    elif hasattr(geom, "geoms"):
        for part in geom.geoms:  # type: ignore[attr-defined]
            yield from _iter_polygons(part)
