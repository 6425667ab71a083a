"""Layer kind descriptors.

Each layer kind differs from the others only in which tool it reads, where
the item collection lives in the tool output, how an item is identified
and which extra attributes it carries.  ``LayerKindDescriptor`` captures
exactly those differences so a single extractor serves every kind.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from nyc_geochat.core.constants import (
    TOOL_MAPPLUTO,
    TOOL_NYC_CENSUS,
    TOOL_NYC_NEIGHBORHOODS,
    TOOL_NYC_PARKS,
    TOOL_NYC_SCHOOL_ZONES,
    TOOL_SPATIAL_ANALYSIS,
)
from nyc_geochat.models.layers import LayerKind

Item = Mapping[str, Any]

GEOJSON_KEY = "geojson"
GEOJSON_REF_KEY = "geojsonDataId"

_SCALARS = (str, int, float, bool)


def _list_at(key: str) -> Callable[[Item], list[Item]]:
    def collect(output: Item) -> list[Item]:
        items = output.get(key)
        if not isinstance(items, list):
            return []
        return [i for i in items if isinstance(i, Mapping)]

    return collect


def _neighborhood_items(output: Item) -> list[Item]:
    # List form first; the single-result form carries its geometry at the top level.
    items = _list_at("neighborhoods")(output)
    if items:
        return items
    if GEOJSON_KEY in output or GEOJSON_REF_KEY in output:
        return [{k: v for k, v in output.items() if k != "neighborhoods"}]
    return []


def _feature_collection(output: Item) -> list[Item]:
    geojson = output.get(GEOJSON_KEY)
    if isinstance(geojson, Mapping) and geojson.get("type") == "FeatureCollection":
        return [{GEOJSON_KEY: geojson}]
    return []


def _spatial_enrichment(output: Item) -> dict[str, str]:
    enrichment = {
        "primaryLayer": output.get("primaryLayer"),
        "query": output.get("query"),
        "spatialRelation": output.get("spatialRelation"),
        "filterDescription": output.get("filterDescription"),
    }
    return {k: str(v) for k, v in enrichment.items() if v is not None}


def _no_enrichment(output: Item) -> dict[str, str]:  # noqa: ARG001
    return {}


def scalar_attributes(item: Item) -> dict[str, str]:
    """Flatten the scalar members of *item* to strings, skipping geometry."""
    return {
        str(k): str(v)
        for k, v in item.items()
        if k not in (GEOJSON_KEY, GEOJSON_REF_KEY) and isinstance(v, _SCALARS)
    }


@dataclass(frozen=True, slots=True)
class LayerKindDescriptor:
    """How to read one layer kind out of tool outputs.

    Attributes:
        kind: The layer kind produced.
        tool_name: Tool whose parts qualify; ``None`` admits any tool.
        collect: Returns the candidate items of a qualifying output.
        id_fields: Item members tried in order for the item id.
        enrich: Extra attributes derived from the whole tool output.
        strip_envelope: Drop ``crs`` and top-level ``properties``.
        namespace_field: Output member prefixed to item ids so that ids
            from different source layers cannot collide.
    """

    kind: LayerKind
    tool_name: str | None
    collect: Callable[[Item], list[Item]]
    id_fields: tuple[str, ...] = ("id",)
    enrich: Callable[[Item], dict[str, str]] = field(default=_no_enrichment)
    strip_envelope: bool = False
    namespace_field: str | None = None

    def accepts_tool(self, tool_name: str) -> bool:
        return self.tool_name is None or self.tool_name == tool_name

    def item_id(self, item: Item, output: Item) -> str | None:
        """Return the item's own identifier, or ``None`` if it has none."""
        raw = next(
            (item[f] for f in self.id_fields if item.get(f) not in (None, "")),
            None,
        )
        if raw is None:
            return None
        namespace = output.get(self.namespace_field) if self.namespace_field else None
        return f"{namespace}:{raw}" if namespace else str(raw)


PARKS = LayerKindDescriptor(
    kind=LayerKind.PARKS,
    tool_name=TOOL_NYC_PARKS,
    collect=_list_at("parks"),
    id_fields=("id", "gispropnum", "name"),
)

CENSUS_BLOCKS = LayerKindDescriptor(
    kind=LayerKind.CENSUS_BLOCKS,
    tool_name=TOOL_NYC_CENSUS,
    collect=_list_at("censusBlocks"),
    id_fields=("id", "geoid"),
)

NEIGHBORHOODS = LayerKindDescriptor(
    kind=LayerKind.NEIGHBORHOODS,
    tool_name=TOOL_NYC_NEIGHBORHOODS,
    collect=_neighborhood_items,
    id_fields=("id", "name", "nta_code"),
    strip_envelope=True,
)

SPATIAL_ANALYSIS = LayerKindDescriptor(
    kind=LayerKind.SPATIAL_ANALYSIS,
    tool_name=TOOL_SPATIAL_ANALYSIS,
    collect=_list_at("results"),
    id_fields=("id", "bbl", "name"),
    enrich=_spatial_enrichment,
    strip_envelope=True,
    namespace_field="primaryLayer",
)

MAPPLUTO = LayerKindDescriptor(
    kind=LayerKind.MAPPLUTO,
    tool_name=TOOL_MAPPLUTO,
    collect=_list_at("properties"),
    id_fields=("id", "bbl", "address"),
    strip_envelope=True,
)

SCHOOL_ZONES = LayerKindDescriptor(
    kind=LayerKind.SCHOOL_ZONES,
    tool_name=TOOL_NYC_SCHOOL_ZONES,
    collect=_list_at("zones"),
    id_fields=("id", "dbn", "schoolName"),
)

GEOJSON = LayerKindDescriptor(
    kind=LayerKind.GEOJSON,
    tool_name=None,
    collect=_feature_collection,
    id_fields=(),
    strip_envelope=True,
)

DESCRIPTORS: dict[LayerKind, LayerKindDescriptor] = {
    d.kind: d
    for d in (
        PARKS,
        CENSUS_BLOCKS,
        NEIGHBORHOODS,
        SPATIAL_ANALYSIS,
        MAPPLUTO,
        SCHOOL_ZONES,
        GEOJSON,
    )
}


def descriptor_for(kind: LayerKind) -> LayerKindDescriptor:
    return DESCRIPTORS[kind]
