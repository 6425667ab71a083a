"""In-memory parcel provider evaluated with shapely.

Holds a fixed list of MapPLUTO-shaped GeoJSON features and answers a
``ParcelQuery`` the way the FeatureServer would: attribute predicates,
geometry ``intersects`` against the area, ascending ``OBJECTID`` and the
limit.  Used for local development and tests.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from shapely.geometry import shape
from shapely.ops import unary_union

from nyc_geochat.core.constants import NATIVE_ID_FIELD, ZONING_DISTRICT_FIELDS
from nyc_geochat.providers.base import ParcelProvider
from nyc_geochat.providers.where import borough_code

if TYPE_CHECKING:
    from nyc_geochat.models.parcel import ParcelPredicates
    from nyc_geochat.providers.base import ParcelQuery

logger = logging.getLogger("nyc_geochat.providers.memory")


def _number(value: object) -> float | None:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _object_id(feature: Mapping[str, Any]) -> float:
    props = feature.get("properties") or {}
    number = _number(props.get(NATIVE_ID_FIELD))
    return number if number is not None else float("inf")


def matches_predicates(properties: Mapping[str, Any], predicates: ParcelPredicates) -> bool:
    """Evaluate *predicates* against raw MapPLUTO attributes.

    A missing attribute never satisfies a constraint on it, matching SQL
    comparison semantics with ``NULL``.
    """
    checks: list[tuple[object, str, str]] = [
        (predicates.land_use, "LandUse", "eq"),
        (predicates.building_class, "BldgClass", "eq"),
        (predicates.zip_code, "ZipCode", "eq"),
        (predicates.owner_type, "OwnerType", "eq"),
        (predicates.min_lot_area, "LotArea", "ge"),
        (predicates.max_lot_area, "LotArea", "le"),
        (predicates.min_year_built, "YearBuilt", "ge"),
        (predicates.max_year_built, "YearBuilt", "le"),
    ]
    for expected, field_name, op in checks:
        if expected is None:
            continue
        actual = properties.get(field_name)
        if op == "eq":
            if actual is None or str(actual) != str(expected):
                return False
            continue
        number = _number(actual)
        if number is None:
            return False
        if op == "ge" and number < float(expected):  # type: ignore[arg-type]
            return False
        if op == "le" and number > float(expected):  # type: ignore[arg-type]
            return False

    if predicates.borough is not None and properties.get("Borough") != borough_code(
        predicates.borough
    ):
        return False

    if predicates.zoning_district is not None and not any(
        properties.get(f) == predicates.zoning_district for f in ZONING_DISTRICT_FIELDS
    ):
        return False

    return True


class InMemoryParcelProvider(ParcelProvider):
    """Parcel provider over a fixed feature list."""

    name = "memory"

    def __init__(self, features: Iterable[Mapping[str, Any]] = ()) -> None:
        self._features = sorted((copy.deepcopy(dict(f)) for f in features), key=_object_id)

    async def fetch(self, query: ParcelQuery) -> list[dict[str, Any]]:
        area = unary_union(query.area.polygons())
        matched: list[dict[str, Any]] = []
        for feature in self._features:
            if len(matched) >= query.limit:
                break
            geometry = feature.get("geometry")
            if not geometry:
                continue
            props = feature.get("properties") or {}
            if not matches_predicates(props, query.predicates):
                continue
            if not shape(geometry).intersects(area):
                continue
            matched.append(copy.deepcopy(feature))

        logger.info(
            "In-memory parcel query | where=%s | features=%d | limit=%d",
            query.where,
            len(matched),
            query.limit,
        )
        return matched
