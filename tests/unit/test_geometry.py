"""Tests for GeoJSON normalisation and the Geometry value."""

from __future__ import annotations

from typing import Any

import pytest

from nyc_geochat.core.exceptions import InvalidArgumentError
from nyc_geochat.models.geometry import (
    Geometry,
    has_geometry,
    is_geojson,
    normalize_geojson,
    strip_envelope,
)
from tests.factories import square


def _collection(*geometries: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "geometry": g, "properties": {}} for g in geometries],
    }


class TestStripEnvelope:
    def test_drops_crs_and_collection_properties(self) -> None:
        fc = {
            **_collection(square(0, 0, 1)),
            "crs": {"type": "name", "properties": {"name": "EPSG:4326"}},
            "properties": {"exceededTransferLimit": True},
        }
        cleaned = strip_envelope(fc)
        assert "crs" not in cleaned
        assert "properties" not in cleaned
        assert cleaned["features"] == fc["features"]

    def test_keeps_feature_properties(self) -> None:
        feature = {"type": "Feature", "geometry": square(0, 0, 1), "properties": {"a": 1}}
        assert strip_envelope(feature)["properties"] == {"a": 1}

    def test_does_not_mutate_input(self) -> None:
        fc = {**_collection(square(0, 0, 1)), "crs": {}}
        strip_envelope(fc)
        assert "crs" in fc


class TestStructuralChecks:
    @pytest.mark.parametrize(
        "value",
        [
            square(0, 0, 1),
            {"type": "Point", "coordinates": [1, 2]},
            {"type": "GeometryCollection", "geometries": [square(0, 0, 1)]},
            {"type": "Feature", "geometry": None, "properties": None},
            _collection(square(0, 0, 1)),
            {"type": "FeatureCollection", "features": []},
        ],
    )
    def test_valid(self, value: dict[str, Any]) -> None:
        assert is_geojson(value)

    @pytest.mark.parametrize(
        "value",
        [
            None,
            [],
            {},
            {"type": "Polygon"},
            {"type": "Polygon", "coordinates": []},
            {"type": "Blob", "coordinates": [[0, 0]]},
            {"type": "FeatureCollection", "features": "nope"},
            {"type": "FeatureCollection", "features": [{"type": "Polygon"}]},
            {"type": "Feature", "geometry": {"type": "Point"}},
            {"type": ["Polygon"], "coordinates": square(0, 0, 1)["coordinates"]},
            {"type": {"kind": "Polygon"}, "coordinates": [[0, 0]]},
            {"type": None, "coordinates": [[0, 0]]},
            {"type": "Feature", "geometry": {"type": ["Point"], "coordinates": [1, 2]}},
            _collection({"type": ["Polygon"], "coordinates": [[0, 0]]}),
        ],
    )
    def test_invalid(self, value: object) -> None:
        assert not is_geojson(value)

    def test_has_geometry_rejects_empty(self) -> None:
        assert not has_geometry({})
        assert not has_geometry(None)
        assert has_geometry(square(0, 0, 1))


class TestNormalize:
    def test_drops_foreign_keys(self) -> None:
        poly = {**square(0, 0, 1), "crs": {}, "properties": {}, "extra": 1}
        assert set(normalize_geojson(poly)) == {"type", "coordinates"}

    def test_rejects_malformed(self) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            normalize_geojson({"type": "Polygon"})
        assert exc_info.value.code == "INVALID_GEOJSON"


class TestGeometryValue:
    def test_from_geojson_strips_envelope(self) -> None:
        fc = {**_collection(square(0, 0, 1)), "crs": {}, "properties": {"x": 1}}
        geometry = Geometry.from_geojson(fc)
        assert geometry.type == "FeatureCollection"
        assert set(geometry.to_dict()) == {"type", "features"}

    def test_to_dict_is_a_copy(self) -> None:
        geometry = Geometry.from_geojson(square(0, 0, 1))
        data = geometry.to_dict()
        data["coordinates"][0][0] = [99, 99]
        assert geometry.to_dict()["coordinates"][0][0] == [0, 0]

    def test_input_mutation_does_not_leak(self) -> None:
        raw = square(0, 0, 1)
        geometry = Geometry.from_geojson(raw)
        raw["coordinates"][0][0] = [99, 99]
        assert geometry.to_dict()["coordinates"][0][0] == [0, 0]

    def test_equality_by_value(self) -> None:
        assert Geometry.from_geojson(square(0, 0, 1)) == Geometry.from_geojson(square(0, 0, 1))

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            Geometry.from_geojson("POLYGON((0 0, 1 0, 1 1, 0 0))")

    def test_polygons_from_multipolygon(self) -> None:
        multi = {
            "type": "MultiPolygon",
            "coordinates": [square(0, 0, 1)["coordinates"], square(5, 5, 1)["coordinates"]],
        }
        assert len(Geometry.from_geojson(multi).polygons()) == 2

    def test_polygons_from_feature_collection(self) -> None:
        fc = _collection(square(0, 0, 1), {"type": "Point", "coordinates": [3, 3]})
        assert len(Geometry.from_geojson(fc).polygons()) == 1

    def test_polygons_of_point_is_empty(self) -> None:
        assert Geometry.from_geojson({"type": "Point", "coordinates": [1, 2]}).polygons() == []

    def test_bad_coordinates_raise(self) -> None:
        geometry = Geometry.from_geojson({"type": "Polygon", "coordinates": [[[0, 0], [1]]]})
        with pytest.raises(InvalidArgumentError) as exc_info:
            geometry.to_shapely()
        assert exc_info.value.code == "INVALID_COORDINATES"
