"""ParcelProvider abstract base class and the backend-neutral query value.

The spatial query engine builds a ``ParcelQuery`` (attribute ``where``
clause, area polygon rings, spatial relation, ordering and limit) and
hands it to a provider.  The provider owns the actual geometry test: the
ArcGIS adapter delegates it to the MapPLUTO FeatureServer, the in-memory
adapter evaluates it with shapely.
"""

from __future__ import annotations

import abc
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from nyc_geochat.core.constants import (
    GEOMETRY_TYPE_POLYGON,
    NATIVE_ID_FIELD,
    SPATIAL_REL_INTERSECTS,
    WGS84_WKID,
)

if TYPE_CHECKING:
    from nyc_geochat.models.geometry import Geometry
    from nyc_geochat.models.parcel import ParcelPredicates


@dataclass(frozen=True, slots=True)
class ParcelQuery:
    """A fully composed parcel query.

    Attributes:
        where: ArcGIS SQL ``where`` clause for the attribute predicates
            (``"1=1"`` when unconstrained).
        rings: Esri polygon rings of the area, WGS 84.  Exterior rings are
            clockwise, holes counter-clockwise.
        area: The area geometry the rings were derived from.
        predicates: The attribute predicates ``where`` was built from.
        limit: Maximum number of records to return.
        spatial_rel: Spatial relation, always intersects.
        wkid: Spatial reference of the rings and of the output geometry.
        order_by: Ordering on the dataset's native id.
    """

    where: str
    rings: tuple[tuple[tuple[float, float], ...], ...]
    area: Geometry
    predicates: ParcelPredicates
    limit: int
    spatial_rel: str = SPATIAL_REL_INTERSECTS
    wkid: int = WGS84_WKID
    order_by: str = f"{NATIVE_ID_FIELD} ASC"

    def to_params(self) -> dict[str, str]:
        """Return the ArcGIS REST ``/query`` form parameters (without paging)."""
        geometry = {
            "rings": [[list(pt) for pt in ring] for ring in self.rings],
            "spatialReference": {"wkid": self.wkid},
        }
        return {
            "where": self.where,
            "geometry": json.dumps(geometry, separators=(",", ":")),
            "geometryType": GEOMETRY_TYPE_POLYGON,
            "spatialRel": self.spatial_rel,
            "inSR": str(self.wkid),
            "outSR": str(self.wkid),
            "outFields": "*",
            "returnGeometry": "true",
            "orderByFields": self.order_by,
            "f": "geojson",
        }


class ParcelProvider(abc.ABC):
    """Abstract base class for parcel dataset backends."""

    name: str = ""

    @abc.abstractmethod
    async def fetch(self, query: ParcelQuery) -> list[dict[str, Any]]:
        """Execute *query* and return matching GeoJSON features.

        Features are ordered ascending by native id and there are never
        more than ``query.limit`` of them.

        Raises:
            UpstreamUnavailableError: If the dataset cannot be reached.
            UnexpectedError: If the backend rejects the query.
        """
