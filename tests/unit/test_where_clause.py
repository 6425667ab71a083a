"""Tests for ArcGIS where-clause composition and borough mapping."""

from __future__ import annotations

import pytest

from nyc_geochat.core.exceptions import InvalidArgumentError
from nyc_geochat.models.parcel import ParcelPredicates
from nyc_geochat.providers.where import MATCH_ALL, borough_code, build_where_clause, quote


class TestBoroughCode:
    @pytest.mark.parametrize(
        ("name", "code"),
        [
            ("Manhattan", "MN"),
            ("the Bronx", "BX"),
            ("Bronx", "BX"),
            ("Brooklyn", "BK"),
            ("Queens", "QN"),
            ("Staten  Island", "SI"),
            ("bk", "BK"),
            ("SI", "SI"),
        ],
    )
    def test_known(self, name: str, code: str) -> None:
        assert borough_code(name) == code

    def test_unknown(self) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            borough_code("Hoboken")
        assert exc_info.value.code == "UNKNOWN_BOROUGH"


class TestQuote:
    def test_escapes_single_quotes(self) -> None:
        assert quote("O'Brien") == "'O''Brien'"


class TestBuildWhereClause:
    def test_no_predicates(self) -> None:
        assert build_where_clause(ParcelPredicates()) == MATCH_ALL

    def test_min_lot_area(self) -> None:
        assert build_where_clause(ParcelPredicates(min_lot_area=10000)) == "LotArea>=10000"

    def test_fractional_area(self) -> None:
        assert build_where_clause(ParcelPredicates(max_lot_area=2500.5)) == "LotArea<=2500.5"

    def test_zoning_matches_any_district_field(self) -> None:
        where = build_where_clause(ParcelPredicates(zoning_district="R6"))
        assert where == "(ZoneDist1='R6' OR ZoneDist2='R6' OR ZoneDist3='R6' OR ZoneDist4='R6')"

    def test_conjunction_order(self) -> None:
        predicates = ParcelPredicates(
            borough="Brooklyn",
            land_use="05",
            max_year_built=1950,
            min_lot_area=5000,
        )
        assert build_where_clause(predicates) == (
            "Borough='BK' AND LandUse='05' AND YearBuilt<=1950 AND LotArea>=5000"
        )

    def test_string_literals_escaped(self) -> None:
        where = build_where_clause(ParcelPredicates(building_class="A'1"))
        assert where == "BldgClass='A''1'"

    def test_all_fields(self) -> None:
        predicates = ParcelPredicates(
            borough="QN",
            zoning_district="C4-2",
            land_use="04",
            building_class="D4",
            min_year_built=1900,
            max_year_built=2000,
            min_lot_area=1000,
            max_lot_area=9000,
            zip_code="11101",
            owner_type="P",
        )
        parts = build_where_clause(predicates).split(" AND ")
        assert parts[0] == "Borough='QN'"
        assert parts[-2:] == ["ZipCode='11101'", "OwnerType='P'"]
        assert len(parts) == 10
