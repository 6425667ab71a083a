"""Shared constants — single source of truth.

Centralises storage layout, tool-output markers and MapPLUTO field names
that would otherwise be duplicated across stores, providers and the
layer extractor.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Storage layout
# ---------------------------------------------------------------------------

DEFAULT_STORAGE_CONTAINER: str = "geochat-data"
"""Default blob container for geometries, chat metadata and areas."""

GEOJSON_PREFIX: str = "geojson"
CHATS_PREFIX: str = "chats"
AREAS_PREFIX: str = "areas"

# ---------------------------------------------------------------------------
# Chat metadata
# ---------------------------------------------------------------------------

VISIBILITY_PUBLIC: str = "public"
VISIBILITY_PRIVATE: str = "private"

PRINCIPAL_HEADER: str = "x-ms-client-principal-id"
"""Header set by App Service authentication with the caller's user id."""

# ---------------------------------------------------------------------------
# Tool output contract
# ---------------------------------------------------------------------------

ASSISTANT_ROLE: str = "assistant"
TOOL_PART_PREFIX: str = "tool-"
OUTPUT_AVAILABLE: str = "output-available"

TOOL_NYC_PARKS: str = "nycParks"
TOOL_NYC_CENSUS: str = "nycCensus"
TOOL_NYC_NEIGHBORHOODS: str = "nycNeighborhoods"
TOOL_SPATIAL_ANALYSIS: str = "spatialAnalysis"
TOOL_MAPPLUTO: str = "mappluto"
TOOL_NYC_SCHOOL_ZONES: str = "nycSchoolZones"

# ---------------------------------------------------------------------------
# MapPLUTO / ArcGIS
# ---------------------------------------------------------------------------

DEFAULT_MAPPLUTO_QUERY_URL: str = (
    "https://services5.arcgis.com/GfwWNkhOj9bNBqoJ/arcgis/rest/services/"
    "MapPLUTO/FeatureServer/0/query"
)

MAX_ARCGIS_PAGE_SIZE: int = 2000
"""Maximum ``resultRecordCount`` the MapPLUTO FeatureServer honours."""

WGS84_WKID: int = 4326
SPATIAL_REL_INTERSECTS: str = "esriSpatialRelIntersects"
GEOMETRY_TYPE_POLYGON: str = "esriGeometryPolygon"
NATIVE_ID_FIELD: str = "OBJECTID"

ZONING_DISTRICT_FIELDS: tuple[str, ...] = ("ZoneDist1", "ZoneDist2", "ZoneDist3", "ZoneDist4")

BOROUGH_PREFIXES: tuple[tuple[str, str], ...] = (
    ("man", "MN"),
    ("bronx", "BX"),
    ("the bronx", "BX"),
    ("brook", "BK"),
    ("que", "QN"),
    ("stat", "SI"),
)
"""Borough name prefix → MapPLUTO ``Borough`` code."""

BOROUGH_CODES: frozenset[str] = frozenset({"MN", "BX", "BK", "QN", "SI"})
