"""Tests for the SpatialQueryEngine over the in-memory parcel provider."""

from __future__ import annotations

from typing import Any

import pytest
from shapely.geometry import LinearRing

from nyc_geochat.activities.spatial_query import (
    SpatialQueryEngine,
    build_parcel_query,
    esri_rings,
    shares_interior,
)
from nyc_geochat.core.exceptions import InvalidArgumentError
from nyc_geochat.models.area import ChatRecord
from nyc_geochat.models.geometry import Geometry
from nyc_geochat.models.parcel import ParcelPredicates, ParcelRecord
from nyc_geochat.providers.memory import InMemoryParcelProvider
from nyc_geochat.stores.area_registry import AreaRegistry
from nyc_geochat.stores.geometry_store import GeometryStore
from nyc_geochat.stores.memory import InMemoryChatRepository, InMemoryGeoJSONRepository
from tests.factories import OWNER, area_square, parcel_feature, square


def _area() -> Geometry:
    return Geometry.from_geojson(area_square())


class TestEsriRings:
    def test_exterior_clockwise(self) -> None:
        rings = esri_rings(_area().polygons())
        assert len(rings) == 1
        assert not LinearRing(rings[0]).is_ccw

    def test_hole_counter_clockwise(self) -> None:
        outer = square(0, 0, 10)["coordinates"][0]
        hole = square(2, 2, 2)["coordinates"][0][::-1]
        geometry = Geometry.from_geojson({"type": "Polygon", "coordinates": [outer, hole]})
        exterior, interior = esri_rings(geometry.polygons())
        assert not LinearRing(exterior).is_ccw
        assert LinearRing(interior).is_ccw

    def test_multipolygon_flattened(self) -> None:
        multi = {
            "type": "MultiPolygon",
            "coordinates": [square(0, 0, 1)["coordinates"], square(5, 5, 1)["coordinates"]],
        }
        assert len(esri_rings(Geometry.from_geojson(multi).polygons())) == 2


class TestBuildParcelQuery:
    def test_params(self) -> None:
        query = build_parcel_query(_area(), ParcelPredicates(min_lot_area=10000), 25)
        params = query.to_params()
        assert params["where"] == "LotArea>=10000"
        assert params["geometryType"] == "esriGeometryPolygon"
        assert params["spatialRel"] == "esriSpatialRelIntersects"
        assert params["inSR"] == "4326"
        assert params["outSR"] == "4326"
        assert params["orderByFields"] == "OBJECTID ASC"
        assert params["f"] == "geojson"
        assert '"rings"' in params["geometry"]

    def test_non_polygonal_area(self) -> None:
        point = Geometry.from_geojson({"type": "Point", "coordinates": [-74.0, 40.7]})
        with pytest.raises(InvalidArgumentError) as exc_info:
            build_parcel_query(point, ParcelPredicates(), 10)
        assert exc_info.value.code == "AREA_NOT_POLYGONAL"


class TestQuery:
    async def test_min_lot_area_ordered(self, engine: SpatialQueryEngine) -> None:
        records = await engine.query(_area(), ParcelPredicates(min_lot_area=10000), 25)
        assert [r.object_id for r in records] == [5, 7]
        assert all(r.lot_area is not None and r.lot_area >= 10000 for r in records)

    async def test_limit_never_exceeded(self) -> None:
        features = [
            parcel_feature(i, square(-74.009 + i * 0.0001, 40.701, 0.00005), LotArea=20000)
            for i in range(1, 41)
        ]
        engine = SpatialQueryEngine(InMemoryParcelProvider(features))
        records = await engine.query(_area(), ParcelPredicates(min_lot_area=10000), 25)
        assert len(records) == 25
        assert [r.object_id for r in records] == list(range(1, 26))

    async def test_no_predicates(self, engine: SpatialQueryEngine) -> None:
        records = await engine.query(_area(), None, 10)
        assert [r.object_id for r in records] == [3, 5, 7]

    async def test_zoning_any_field(self, engine: SpatialQueryEngine) -> None:
        records = await engine.query(_area(), ParcelPredicates(zoning_district="C5-5"), 10)
        assert [r.object_id for r in records] == [5, 7]

    async def test_borough_name(self, engine: SpatialQueryEngine) -> None:
        records = await engine.query(_area(), ParcelPredicates(borough="Bronx"), 10)
        assert records == []

    async def test_raw_geojson_area_accepted(self, engine: SpatialQueryEngine) -> None:
        records = await engine.query(area_square(), ParcelPredicates(max_year_built=1900), 10)
        assert [r.object_id for r in records] == [3]

    async def test_missing_area(self, engine: SpatialQueryEngine) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            await engine.query(None, None, 10)
        assert exc_info.value.code == "MISSING_AREA"

    async def test_malformed_area(self, engine: SpatialQueryEngine) -> None:
        with pytest.raises(InvalidArgumentError):
            await engine.query({"type": "Polygon"}, None, 10)  # type: ignore[arg-type]

    @pytest.mark.parametrize("limit", [0, -1, 2001, "10", 2.5, True])
    async def test_invalid_limit(self, engine: SpatialQueryEngine, limit: Any) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            await engine.query(_area(), None, limit)
        assert exc_info.value.code == "INVALID_LIMIT"

    async def test_unusable_feature_skipped(self) -> None:
        features = [
            {"type": "Feature", "geometry": square(-74.005, 40.705, 0.001), "properties": {}},
            parcel_feature(2, square(-74.004, 40.704, 0.001)),
        ]
        engine = SpatialQueryEngine(InMemoryParcelProvider(features))
        records = await engine.query(_area(), None, 10)
        assert [r.object_id for r in records] == [2]


class TestEndToEnd:
    async def test_area_scoped_query_returns_only_inside_parcel(self) -> None:
        chat_id = "3f2504e0-4f89-41d3-9a0c-0305e82c3301"
        chats = InMemoryChatRepository()
        chats.add_chat(ChatRecord(id=chat_id, user_id=OWNER))
        registry = AreaRegistry(chats, GeometryStore(InMemoryGeoJSONRepository()))
        await registry.define(chat_id, OWNER, name="sq", summary="square", geojson=square(0, 0, 10))

        provider = InMemoryParcelProvider(
            [
                parcel_feature(1, square(2, 2, 1), Address="INSIDE"),
                parcel_feature(2, square(20, 20, 1), Address="OUTSIDE"),
            ]
        )
        area = await registry.require(chat_id, OWNER)
        assert area is not None
        records = await SpatialQueryEngine(provider).query(area.geometry, None, 10)
        assert [r.address for r in records] == ["INSIDE"]


class TestQueryForGeometryIds:
    async def test_union_deduplicated_and_ordered(
        self, engine: SpatialQueryEngine, geometry_store: GeometryStore
    ) -> None:
        whole = await geometry_store.save(_area())
        corner = await geometry_store.save(Geometry.from_geojson(square(-74.0035, 40.7065, 0.002)))
        records = await engine.query_for_geometry_ids(geometry_store, [corner, whole], limit=50)
        assert [r.object_id for r in records] == [3, 5, 7]

    async def test_adjacent_lot_sharing_edge_excluded(self, geometry_store: GeometryStore) -> None:
        lot = square(0, 0, 1)
        engine = SpatialQueryEngine(
            InMemoryParcelProvider(
                [
                    parcel_feature(1, lot, Address="THE LOT"),
                    parcel_feature(2, square(1, 0, 1), Address="NEXT DOOR"),
                    parcel_feature(3, square(1, 1, 1), Address="CORNER"),
                ]
            )
        )
        lot_id = await geometry_store.save(Geometry.from_geojson(lot))
        records = await engine.query_for_geometry_ids(geometry_store, [lot_id], limit=50)
        assert [r.object_id for r in records] == [1]

    async def test_missing_ids_skipped(
        self, engine: SpatialQueryEngine, geometry_store: GeometryStore
    ) -> None:
        missing = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
        records = await engine.query_for_geometry_ids(geometry_store, [missing], limit=50)
        assert records == []

    async def test_invalid_id_raises(
        self, engine: SpatialQueryEngine, geometry_store: GeometryStore
    ) -> None:
        with pytest.raises(InvalidArgumentError):
            await engine.query_for_geometry_ids(geometry_store, ["nope"], limit=50)


class TestSharesInterior:
    def _footprint(self):  # type: ignore[no-untyped-def]
        return Geometry.from_geojson(square(0, 0, 1)).to_shapely()

    def test_overlapping_parcel(self) -> None:
        record = ParcelRecord.from_feature(parcel_feature(1, square(0.5, 0.5, 1)))
        assert shares_interior(record, self._footprint()) is True

    def test_touching_parcel(self) -> None:
        record = ParcelRecord.from_feature(parcel_feature(2, square(0, 1, 1)))
        assert shares_interior(record, self._footprint()) is False

    def test_parcel_without_geometry(self) -> None:
        record = ParcelRecord.from_feature(parcel_feature(3, None))
        assert shares_interior(record, self._footprint()) is False
