"""Area-scoped parcel queries against the MapPLUTO dataset.

The engine turns an area geometry and a set of attribute predicates into a
``ParcelQuery`` and hands it to the configured ``ParcelProvider``, which
owns the ``intersects`` test.  Geometry-id lookups then keep only parcels
whose interior overlaps the stored geometry, so adjacent lots that merely
share an edge are not reported.

Ordering is ascending by the dataset's native id (``OBJECTID``) and the
limit is applied at the query boundary, so the backend never returns more
rows than requested.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shapely.geometry.polygon import orient
from shapely.ops import unary_union

from nyc_geochat.core.exceptions import InvalidArgumentError, NotFoundError
from nyc_geochat.models.geometry import Geometry
from nyc_geochat.models.parcel import ParcelPredicates, ParcelRecord
from nyc_geochat.providers.base import ParcelQuery
from nyc_geochat.providers.where import build_where_clause

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shapely.geometry.base import BaseGeometry
    from shapely.geometry.polygon import Polygon

    from nyc_geochat.providers.base import ParcelProvider
    from nyc_geochat.stores.geometry_store import GeometryStore

logger = logging.getLogger("nyc_geochat.activities.spatial_query")

_STAGE = "spatial_query"

Ring = tuple[tuple[float, float], ...]


def esri_rings(polygons: Iterable[Polygon]) -> tuple[Ring, ...]:
    """Return Esri polygon rings for *polygons*.

    Exterior rings are clockwise and holes counter-clockwise, as the
    ArcGIS JSON geometry format requires.  Z values are dropped.
    """
    rings: list[Ring] = []
    for polygon in polygons:
        oriented = orient(polygon, sign=-1.0)
        for ring in (oriented.exterior, *oriented.interiors):
            rings.append(tuple((float(c[0]), float(c[1])) for c in ring.coords))
    return tuple(rings)


def build_parcel_query(
    area_geometry: Geometry,
    predicates: ParcelPredicates,
    limit: int,
) -> ParcelQuery:
    """Compose the backend-neutral query for one area.

    Raises:
        InvalidArgumentError: If the area contains no polygon.
    """
    polygons = area_geometry.polygons()
    if not polygons:
        msg = f"Area geometry must contain a polygon, got {area_geometry.type}"
        raise InvalidArgumentError(msg, stage=_STAGE, code="AREA_NOT_POLYGONAL")
    return ParcelQuery(
        where=build_where_clause(predicates),
        rings=esri_rings(polygons),
        area=area_geometry,
        predicates=predicates,
        limit=limit,
    )


def _to_records(features: Iterable[dict]) -> list[ParcelRecord]:
    records: list[ParcelRecord] = []
    for feature in features:
        try:
            records.append(ParcelRecord.from_feature(feature))
        except (ValueError, InvalidArgumentError) as exc:
            logger.warning("Skipping unusable parcel feature | error=%s", exc)
    return records


class SpatialQueryEngine:
    """Evaluate attribute and spatial predicates over MapPLUTO parcels.

    Args:
        provider: Parcel dataset backend.
        max_limit: Largest ``limit`` a caller may request.
    """

    def __init__(self, provider: ParcelProvider, *, max_limit: int = 2000) -> None:
        self._provider = provider
        self._max_limit = max_limit

    def _check_limit(self, limit: object) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int):
            msg = f"limit must be an integer, got {type(limit).__name__}"
            raise InvalidArgumentError(msg, stage=_STAGE, code="INVALID_LIMIT")
        if not 1 <= limit <= self._max_limit:
            msg = f"limit must be between 1 and {self._max_limit}, got {limit}"
            raise InvalidArgumentError(msg, stage=_STAGE, code="INVALID_LIMIT")
        return limit

    async def query(
        self,
        area_geometry: Geometry | None,
        predicates: ParcelPredicates | None = None,
        limit: int = 50,
    ) -> list[ParcelRecord]:
        """Return parcels intersecting *area_geometry* that match *predicates*.

        Raises:
            InvalidArgumentError: Missing or malformed area geometry, or a
                non-positive limit.
            UpstreamUnavailableError: The parcel backend is unreachable.
            UnexpectedError: The parcel backend rejected the query.
        """
        if area_geometry is None:
            msg = "Area geometry is required"
            raise InvalidArgumentError(msg, stage=_STAGE, code="MISSING_AREA")
        if not isinstance(area_geometry, Geometry):
            area_geometry = Geometry.from_geojson(area_geometry)
        limit = self._check_limit(limit)
        predicates = predicates or ParcelPredicates()

        query = build_parcel_query(area_geometry, predicates, limit)
        logger.info(
            "Parcel query started | provider=%s | where=%s | rings=%d | limit=%d",
            self._provider.name,
            query.where,
            len(query.rings),
            limit,
        )

        features = await self._provider.fetch(query)
        records = sorted(_to_records(features), key=lambda r: r.object_id)[:limit]

        logger.info(
            "Parcel query completed | provider=%s | records=%d",
            self._provider.name,
            len(records),
        )
        return records

    async def query_for_geometry_ids(
        self,
        geometries: GeometryStore,
        geojson_ids: Iterable[str],
        *,
        limit: int = 50,
        predicates: ParcelPredicates | None = None,
    ) -> list[ParcelRecord]:
        """Return parcels associated with any of the stored geometries.

        Each id is resolved through *geometries* and queried separately.
        Only parcels whose interior overlaps the stored geometry belong to
        it; lots that merely share an edge or corner with it are dropped.
        The union is deduplicated by ``object_id`` and ordered ascending.
        Ids with no stored geometry are skipped.

        Raises:
            InvalidArgumentError: A malformed id or limit.
            UpstreamUnavailableError: Storage or the parcel backend is
                unreachable.
        """
        limit = self._check_limit(limit)
        by_id: dict[int, ParcelRecord] = {}
        for geojson_id in geojson_ids:
            try:
                geometry = await geometries.resolve(geojson_id)
            except NotFoundError:
                logger.warning("Parcel lookup skipped missing geometry | id=%s", geojson_id)
                continue
            polygons = geometry.polygons()
            if not polygons:
                logger.warning(
                    "Parcel lookup skipped non-polygonal geometry | id=%s | type=%s",
                    geojson_id,
                    geometry.type,
                )
                continue
            footprint = unary_union(polygons)
            for record in await self.query(geometry, predicates, limit):
                if shares_interior(record, footprint):
                    by_id.setdefault(record.object_id, record)

        return [by_id[k] for k in sorted(by_id)][:limit]


def shares_interior(record: ParcelRecord, footprint: BaseGeometry) -> bool:
    """Return ``True`` when the parcel's interior overlaps *footprint*.

    Parcels without a usable geometry never match.
    """
    if record.geometry is None:
        return False
    try:
        polygons = record.geometry.polygons()
    except InvalidArgumentError:
        logger.warning("Parcel geometry unusable | object_id=%s", record.object_id)
        return False
    if not polygons:
        return False
    return bool(unary_union(polygons).relate_pattern(footprint, "T********"))
