"""Fill in geometry references before layer extraction.

Tools that return large geometries store them in the geometry store and
emit only a ``geojsonDataId``.  ``hydrate_geometry_refs`` resolves those
references and returns a new message sequence in which each such item
carries its ``geojson`` inline, so the pure extractor can read it.

Resolution failures are logged and the item is left as-is; the extractor
then drops it for lack of geometry.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, MutableMapping, Sequence
from typing import TYPE_CHECKING, Any

from nyc_geochat.core.constants import TOOL_MAPPLUTO, TOOL_SPATIAL_ANALYSIS
from nyc_geochat.core.exceptions import GeoChatError
from nyc_geochat.layers.extractor import iter_tool_outputs
from nyc_geochat.layers.kinds import GEOJSON_KEY, GEOJSON_REF_KEY
from nyc_geochat.models.geometry import has_geometry

if TYPE_CHECKING:
    from nyc_geochat.stores.geometry_store import GeometryStore

logger = logging.getLogger("nyc_geochat.layers.hydration")

_COLLECTION_KEYS = ("parks", "censusBlocks", "neighborhoods", "results", "properties", "zones")
_PROPERTIES_LAYER = "properties"


def _needs_geometry(item: Mapping[str, Any]) -> bool:
    return not has_geometry(item.get(GEOJSON_KEY)) and bool(item.get(GEOJSON_REF_KEY))


def _same(left: object, right: object) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def match_property_feature(
    collection: Mapping[str, Any],
    item: Mapping[str, Any],
) -> Mapping[str, Any]:
    """Pick the feature of a stored property collection that *item* describes.

    Matches on ``BBL``, then ``OBJECTID`` against the item id, then
    ``Address``.  Falls back to the whole collection when nothing matches.
    """
    for feature in collection.get("features") or []:
        if not isinstance(feature, Mapping):
            continue
        props = feature.get("properties") or {}
        if (
            _same(props.get("BBL"), item.get("bbl"))
            or _same(props.get("OBJECTID"), item.get("id"))
            or _same(props.get("Address"), item.get("address"))
        ):
            return feature
    return collection


async def hydrate_geometry_refs(
    messages: Sequence[Mapping[str, Any]],
    store: GeometryStore,
) -> list[Mapping[str, Any]]:
    """Return *messages* with ``geojsonDataId``-only items resolved.

    The input is never mutated; messages without references are returned
    as the same objects.
    """
    targets = [
        (m_index, p_index, tool_name)
        for m_index, _message, p_index, tool_name, output in iter_tool_outputs(messages)
        if _has_refs(output)
    ]
    if not targets:
        return list(messages)

    hydrated: list[Mapping[str, Any]] = list(messages)
    cache: dict[str, dict[str, Any] | None] = {}
    resolved = failed = 0

    for m_index, p_index, tool_name in targets:
        if hydrated[m_index] is messages[m_index]:
            hydrated[m_index] = copy.deepcopy(messages[m_index])
        output = hydrated[m_index]["parts"][p_index]["output"]
        for item in _ref_items(output):
            geojson = await _resolve(store, str(item[GEOJSON_REF_KEY]), cache)
            if geojson is None:
                failed += 1
                continue
            if _is_property_item(tool_name, item) and geojson.get("type") == "FeatureCollection":
                geojson = copy.deepcopy(dict(match_property_feature(geojson, item)))
            item[GEOJSON_KEY] = geojson
            resolved += 1

    logger.info("Geometry refs hydrated | resolved=%d | failed=%d", resolved, failed)
    return hydrated


def _is_property_item(tool_name: str, item: Mapping[str, Any]) -> bool:
    if tool_name == TOOL_MAPPLUTO:
        return True
    return tool_name == TOOL_SPATIAL_ANALYSIS and item.get("layerType") == _PROPERTIES_LAYER


def _has_refs(output: Mapping[str, Any]) -> bool:
    if _needs_geometry(output):
        return True
    return any(
        isinstance(i, Mapping) and _needs_geometry(i)
        for key in _COLLECTION_KEYS
        if isinstance(output.get(key), list)
        for i in output[key]
    )


def _ref_items(output: MutableMapping[str, Any]) -> list[MutableMapping[str, Any]]:
    items: list[MutableMapping[str, Any]] = []
    if _needs_geometry(output):
        items.append(output)
    for key in _COLLECTION_KEYS:
        collection = output.get(key)
        if isinstance(collection, list):
            items.extend(i for i in collection if isinstance(i, MutableMapping) and _needs_geometry(i))
    return items


async def _resolve(
    store: GeometryStore,
    geojson_id: str,
    cache: dict[str, dict[str, Any] | None],
) -> dict[str, Any] | None:
    if geojson_id not in cache:
        try:
            cache[geojson_id] = (await store.resolve(geojson_id)).to_dict()
        except GeoChatError as exc:
            logger.warning(
                "Geometry ref unresolved | id=%s | code=%s | error=%s",
                geojson_id,
                exc.code,
                exc.message,
            )
            cache[geojson_id] = None
    cached = cache[geojson_id]
    return copy.deepcopy(cached) if cached is not None else None
