"""Data models and schemas.

- Geometry: Canonical, immutable GeoJSON value
- Area / ChatRecord: Area of interest per chat and its owning chat metadata
- ParcelRecord / ParcelPredicates: MapPLUTO tax lots and attribute filters
- LayerResult / LayerState: Map layers derived from chat tool outputs
"""

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
from nyc_geochat.models.geometry import Geometry, has_geometry, normalize_geojson, strip_envelope
from nyc_geochat.models.layers import LayerKind, LayerResult, LayerState, Provenance
from nyc_geochat.models.parcel import ParcelPredicates, ParcelRecord

__all__ = [
    "Area",
    "AreaForbidden",
    "AreaFound",
    "AreaInvalid",
    "AreaLookup",
    "AreaNotFound",
    "AreaRecord",
    "ChatRecord",
    "Geometry",
    "LayerKind",
    "LayerResult",
    "LayerState",
    "ParcelPredicates",
    "ParcelRecord",
    "Provenance",
    "has_geometry",
    "normalize_geojson",
    "strip_envelope",
]
