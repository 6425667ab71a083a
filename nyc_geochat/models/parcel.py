"""Parcel records and attribute predicates for MapPLUTO queries.

``ParcelPredicates`` is validated with pydantic because it is built
directly from request bodies and tool arguments (camelCase on the wire).
``ParcelRecord`` is a read-only view of one MapPLUTO tax lot.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from nyc_geochat.core.constants import NATIVE_ID_FIELD, ZONING_DISTRICT_FIELDS
from nyc_geochat.models.geometry import Geometry, has_geometry


class ParcelPredicates(BaseModel):
    """Optional attribute constraints, composed conjunctively.

    Absent options impose no constraint.  Lot areas are square feet.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    land_use: str | None = Field(default=None, min_length=1, max_length=4)
    min_lot_area: float | None = Field(default=None, ge=0)
    max_lot_area: float | None = Field(default=None, ge=0)
    min_year_built: int | None = Field(default=None, ge=1600, le=2100)
    max_year_built: int | None = Field(default=None, ge=1600, le=2100)
    zoning_district: str | None = Field(default=None, min_length=1, max_length=16)
    borough: str | None = Field(default=None, min_length=1)
    building_class: str | None = Field(default=None, min_length=1, max_length=4)
    zip_code: str | None = Field(default=None, pattern=r"^\d{5}$")
    owner_type: str | None = Field(default=None, min_length=1, max_length=2)

    @model_validator(mode="after")
    def _check_ranges(self) -> ParcelPredicates:
        if (
            self.min_lot_area is not None
            and self.max_lot_area is not None
            and self.min_lot_area > self.max_lot_area
        ):
            msg = "min_lot_area must be <= max_lot_area"
            raise ValueError(msg)
        if (
            self.min_year_built is not None
            and self.max_year_built is not None
            and self.min_year_built > self.max_year_built
        ):
            msg = "min_year_built must be <= max_year_built"
            raise ValueError(msg)
        return self

    @property
    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


def _opt_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _opt_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _opt_int(value: object) -> int | None:
    number = _opt_float(value)
    return int(number) if number is not None else None


@dataclass(frozen=True, slots=True)
class ParcelRecord:
    """One MapPLUTO tax lot.

    Attributes:
        object_id: The dataset's stable native identifier (``OBJECTID``).
        bbl: Borough-Block-Lot identifier.
        lot_area: Lot area in square feet.
        building_area: Gross building floor area in square feet.
        zoning_district: First non-empty of ``ZoneDist1..4``.
        geometry: Parcel footprint, when the backend returned geometry.
    """

    object_id: int
    bbl: str | None = None
    borough: str | None = None
    block: str | None = None
    lot: str | None = None
    address: str | None = None
    land_use: str | None = None
    building_class: str | None = None
    lot_area: float | None = None
    building_area: float | None = None
    year_built: int | None = None
    zoning_district: str | None = None
    zip_code: str | None = None
    owner_name: str | None = None
    owner_type: str | None = None
    geometry: Geometry | None = None

    @classmethod
    def from_feature(cls, feature: Mapping[str, Any]) -> ParcelRecord:
        """Build a record from a GeoJSON feature returned by MapPLUTO.

        Raises:
            ValueError: If the feature has no usable ``OBJECTID``.
        """
        props = feature.get("properties") or {}
        if not isinstance(props, Mapping):
            msg = "Feature properties must be an object"
            raise ValueError(msg)  # noqa: TRY004
        object_id = _opt_int(props.get(NATIVE_ID_FIELD, feature.get("id")))
        if object_id is None:
            msg = f"Feature has no {NATIVE_ID_FIELD}"
            raise ValueError(msg)

        zoning = next(
            (str(props[f]) for f in ZONING_DISTRICT_FIELDS if props.get(f)),
            None,
        )
        raw_geometry = feature.get("geometry")
        geometry = Geometry.from_geojson(raw_geometry) if has_geometry(raw_geometry) else None

        return cls(
            object_id=object_id,
            bbl=_opt_str(_opt_int(props.get("BBL"))) or _opt_str(props.get("BBL")),
            borough=_opt_str(props.get("Borough")),
            block=_opt_str(props.get("Block")),
            lot=_opt_str(props.get("Lot")),
            address=_opt_str(props.get("Address")),
            land_use=_opt_str(props.get("LandUse")),
            building_class=_opt_str(props.get("BldgClass")),
            lot_area=_opt_float(props.get("LotArea")),
            building_area=_opt_float(props.get("BldgArea")),
            year_built=_opt_int(props.get("YearBuilt")),
            zoning_district=zoning,
            zip_code=_opt_str(props.get("ZipCode")),
            owner_name=_opt_str(props.get("OwnerName")),
            owner_type=_opt_str(props.get("OwnerType")),
            geometry=geometry,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialise for HTTP responses (camelCase keys)."""
        return {
            "objectId": self.object_id,
            "bbl": self.bbl,
            "borough": self.borough,
            "block": self.block,
            "lot": self.lot,
            "address": self.address,
            "landUse": self.land_use,
            "buildingClass": self.building_class,
            "lotArea": self.lot_area,
            "bldgArea": self.building_area,
            "yearBuilt": self.year_built,
            "zoningDistrict": self.zoning_district,
            "zipcode": self.zip_code,
            "ownerName": self.owner_name,
            "ownerType": self.owner_type,
            "geojson": self.geometry.to_dict() if self.geometry else None,
        }
