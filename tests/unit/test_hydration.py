"""Tests for resolving ``geojsonDataId`` references in tool outputs."""

from __future__ import annotations

import copy
from typing import Any

from nyc_geochat.layers.extractor import extract
from nyc_geochat.layers.hydration import hydrate_geometry_refs, match_property_feature
from nyc_geochat.models.geometry import Geometry
from nyc_geochat.models.layers import LayerKind
from nyc_geochat.stores.geometry_store import GeometryStore
from tests.factories import assistant, parcel_feature, square, tool_part, user

MISSING_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


def _properties_collection() -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            parcel_feature(11, square(0, 0, 1), BBL=3000110001, Address="11 FIRST AVE"),
            parcel_feature(12, square(2, 2, 1), BBL=3000120001, Address="12 SECOND AVE"),
        ],
    }


class TestMatchPropertyFeature:
    def test_by_bbl(self) -> None:
        feature = match_property_feature(_properties_collection(), {"bbl": "3000120001"})
        assert feature["properties"]["OBJECTID"] == 12

    def test_by_object_id(self) -> None:
        feature = match_property_feature(_properties_collection(), {"id": 11})
        assert feature["properties"]["OBJECTID"] == 11

    def test_by_address(self) -> None:
        feature = match_property_feature(_properties_collection(), {"address": "12 SECOND AVE"})
        assert feature["properties"]["OBJECTID"] == 12

    def test_falls_back_to_collection(self) -> None:
        collection = _properties_collection()
        assert match_property_feature(collection, {"bbl": "999"}) is collection


class TestHydrateGeometryRefs:
    async def test_parks_ref_resolved(self, geometry_store: GeometryStore) -> None:
        geojson_id = await geometry_store.save(Geometry.from_geojson(square(0, 0, 1)))
        messages = [
            assistant("a1", tool_part("nycParks", {"parks": [{"id": "p1", "geojsonDataId": geojson_id}]}))
        ]
        snapshot = copy.deepcopy(messages)

        hydrated = await hydrate_geometry_refs(messages, geometry_store)

        assert messages == snapshot
        park = hydrated[0]["parts"][0]["output"]["parks"][0]
        assert park["geojson"]["type"] == "Polygon"
        assert [r.id for r in extract(hydrated, LayerKind.PARKS)] == ["p1"]

    async def test_untouched_messages_are_same_objects(self, geometry_store: GeometryStore) -> None:
        messages = [
            user("u1", {"type": "text", "text": "hi"}),
            assistant("a1", tool_part("nycParks", {"parks": [{"id": "p1", "geojson": square(0, 0, 1)}]})),
        ]
        hydrated = await hydrate_geometry_refs(messages, geometry_store)
        assert all(h is m for h, m in zip(hydrated, messages, strict=True))

    async def test_unresolved_ref_left_and_dropped(self, geometry_store: GeometryStore) -> None:
        messages = [
            assistant(
                "a1",
                tool_part("nycCensus", {"censusBlocks": [{"geoid": "1", "geojsonDataId": MISSING_ID}]}),
            )
        ]
        hydrated = await hydrate_geometry_refs(messages, geometry_store)
        block = hydrated[0]["parts"][0]["output"]["censusBlocks"][0]
        assert "geojson" not in block
        assert extract(hydrated, LayerKind.CENSUS_BLOCKS) == ()

    async def test_invalid_ref_does_not_raise(self, geometry_store: GeometryStore) -> None:
        messages = [
            assistant("a1", tool_part("nycParks", {"parks": [{"id": "p1", "geojsonDataId": "bogus"}]}))
        ]
        hydrated = await hydrate_geometry_refs(messages, geometry_store)
        assert extract(hydrated, LayerKind.PARKS) == ()

    async def test_neighborhood_single_output(self, geometry_store: GeometryStore) -> None:
        geojson_id = await geometry_store.save(Geometry.from_geojson(square(0, 0, 1)))
        output = {"id": "BK0101", "name": "Greenpoint", "geojsonDataId": geojson_id}
        messages = [assistant("a1", tool_part("nycNeighborhoods", output))]
        hydrated = await hydrate_geometry_refs(messages, geometry_store)
        (result,) = extract(hydrated, LayerKind.NEIGHBORHOODS)
        assert result.id == "BK0101"

    async def test_spatial_properties_feature_matched_by_bbl(
        self, geometry_store: GeometryStore
    ) -> None:
        geojson_id = await geometry_store.save(Geometry.from_geojson(_properties_collection()))
        output = {
            "primaryLayer": "properties",
            "query": "lots near the park",
            "results": [
                {"id": 12, "bbl": 3000120001, "layerType": "properties", "geojsonDataId": geojson_id},
                {"id": 11, "bbl": 3000110001, "layerType": "properties", "geojsonDataId": geojson_id},
            ],
        }
        messages = [assistant("a1", tool_part("spatialAnalysis", output))]
        hydrated = await hydrate_geometry_refs(messages, geometry_store)

        results = extract(hydrated, LayerKind.SPATIAL_ANALYSIS)
        assert [r.id for r in results] == ["properties:12", "properties:11"]
        first = results[0].geometry.to_dict()
        assert first["type"] == "Feature"
        assert first["properties"]["OBJECTID"] == 12

    async def test_mappluto_property_feature_matched_by_bbl(
        self, geometry_store: GeometryStore
    ) -> None:
        geojson_id = await geometry_store.save(Geometry.from_geojson(_properties_collection()))
        output = {
            "properties": [
                {"id": "11", "bbl": "3000110001", "geojsonDataId": geojson_id},
            ],
            "summary": {"totalProperties": 1},
        }
        messages = [assistant("a1", tool_part("mappluto", output))]
        hydrated = await hydrate_geometry_refs(messages, geometry_store)

        (result,) = extract(hydrated, LayerKind.MAPPLUTO)
        assert result.id == "11"
        assert result.geometry.to_dict()["properties"]["BBL"] == 3000110001

    async def test_school_zone_ref_resolved(self, geometry_store: GeometryStore) -> None:
        geojson_id = await geometry_store.save(Geometry.from_geojson(square(0, 0, 1)))
        output = {"zones": [{"dbn": "20K503", "schoolName": "PS 503", "geojsonDataId": geojson_id}]}
        messages = [assistant("a1", tool_part("nycSchoolZones", output))]
        hydrated = await hydrate_geometry_refs(messages, geometry_store)

        (result,) = extract(hydrated, LayerKind.SCHOOL_ZONES)
        assert result.id == "20K503"
        assert result.geometry.type == "Polygon"
