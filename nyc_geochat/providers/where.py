"""ArcGIS SQL ``where`` clause composition for MapPLUTO attribute predicates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nyc_geochat.core.constants import BOROUGH_CODES, BOROUGH_PREFIXES, ZONING_DISTRICT_FIELDS
from nyc_geochat.core.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from nyc_geochat.models.parcel import ParcelPredicates

MATCH_ALL = "1=1"


def borough_code(borough: str) -> str:
    """Map a borough name or code to the two-letter MapPLUTO code.

    Accepts names matched by leading prefix (``"Staten Island"``,
    ``"manhattan"``) and codes (``"BK"``).

    Raises:
        InvalidArgumentError: If *borough* names no NYC borough.
    """
    text = " ".join(borough.split()).lower()
    if text.upper() in BOROUGH_CODES:
        return text.upper()
    for prefix, code in BOROUGH_PREFIXES:
        if text.startswith(prefix):
            return code
    msg = f"Unknown borough: {borough!r}"
    raise InvalidArgumentError(msg, stage="spatial_query", code="UNKNOWN_BOROUGH")


def quote(value: str) -> str:
    """Quote a string literal for ArcGIS SQL."""
    return "'" + value.replace("'", "''") + "'"


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def build_where_clause(predicates: ParcelPredicates) -> str:
    """Compose *predicates* into a conjunctive ``where`` clause.

    Returns ``"1=1"`` when no predicate is set.
    """
    parts: list[str] = []
    if predicates.borough is not None:
        parts.append(f"Borough={quote(borough_code(predicates.borough))}")
    if predicates.zoning_district is not None:
        literal = quote(predicates.zoning_district)
        parts.append("(" + " OR ".join(f"{f}={literal}" for f in ZONING_DISTRICT_FIELDS) + ")")
    if predicates.land_use is not None:
        parts.append(f"LandUse={quote(predicates.land_use)}")
    if predicates.building_class is not None:
        parts.append(f"BldgClass={quote(predicates.building_class)}")
    if predicates.min_year_built is not None:
        parts.append(f"YearBuilt>={predicates.min_year_built}")
    if predicates.max_year_built is not None:
        parts.append(f"YearBuilt<={predicates.max_year_built}")
    if predicates.min_lot_area is not None:
        parts.append(f"LotArea>={_num(predicates.min_lot_area)}")
    if predicates.max_lot_area is not None:
        parts.append(f"LotArea<={_num(predicates.max_lot_area)}")
    if predicates.zip_code is not None:
        parts.append(f"ZipCode={quote(predicates.zip_code)}")
    if predicates.owner_type is not None:
        parts.append(f"OwnerType={quote(predicates.owner_type)}")
    return " AND ".join(parts) if parts else MATCH_ALL
