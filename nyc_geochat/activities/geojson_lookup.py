"""Geometry-by-id lookup for ``GET /geojson/{id}``.

Geometries are keyed by content id and treated as public: anyone holding
an id can read it.  Callers that need chat-scoped confidentiality must not
hand raw ids to unauthorized principals.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from nyc_geochat.core.exceptions import InvalidArgumentError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from nyc_geochat.stores.geometry_store import GeometryStore

logger = logging.getLogger("nyc_geochat.activities.geojson_lookup")

_STAGE = "geojson_lookup"


@contextmanager
def bad_request_on_failure(geojson_id: str) -> Iterator[None]:
    """Report every failure other than a miss or a bad id as a bad request."""
    try:
        yield
    except (NotFoundError, InvalidArgumentError):
        raise
    except Exception as exc:
        logger.exception("GeoJSON lookup failed | id=%s", geojson_id)
        raise InvalidArgumentError(
            "Bad request", stage=_STAGE, code="GEOJSON_LOOKUP_FAILED"
        ) from exc


async def lookup_geojson(store: GeometryStore, geojson_id: str) -> dict[str, Any]:
    """Return ``{"geojson": ...}`` for the stored geometry.

    Raises:
        NotFoundError: Nothing is stored under *geojson_id*.
        InvalidArgumentError: Missing or malformed id, or any other failure,
            storage outages included.
    """
    with bad_request_on_failure(geojson_id):
        geometry = await store.resolve(geojson_id)
    return {"geojson": geometry.to_dict()}
