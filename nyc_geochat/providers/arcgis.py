"""NYC MapPLUTO adapter (ArcGIS FeatureServer REST API).

Queries the live MapPLUTO layer with the area polygon as an
``esriSpatialRelIntersects`` filter.  The limit is enforced server-side
through ``resultRecordCount``; larger limits are paged with
``resultOffset`` until either the limit is reached or a short page is
returned.

References:
    ArcGIS REST API, Query (Feature Service/Layer):
        https://developers.arcgis.com/rest/services-reference/enterprise/query-feature-service-layer/
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx

from nyc_geochat.core.constants import DEFAULT_MAPPLUTO_QUERY_URL, MAX_ARCGIS_PAGE_SIZE
from nyc_geochat.core.exceptions import UnexpectedError, UpstreamUnavailableError
from nyc_geochat.providers.base import ParcelProvider

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from nyc_geochat.providers.base import ParcelQuery

logger = logging.getLogger("nyc_geochat.providers.arcgis")

_STAGE = "spatial_query"

# ArcGIS reports server-side trouble in the JSON body with HTTP 200.
_RETRYABLE_ERROR_CODES = frozenset({429, 500, 502, 503, 504})


class ArcGISParcelProvider(ParcelProvider):
    """MapPLUTO FeatureServer adapter using ``httpx``.

    An ``httpx.AsyncClient`` may be injected (tests pass one with a
    ``MockTransport``); otherwise a client is opened per ``fetch`` call.
    """

    name = "arcgis"

    def __init__(
        self,
        *,
        query_url: str = DEFAULT_MAPPLUTO_QUERY_URL,
        page_size: int = MAX_ARCGIS_PAGE_SIZE,
        timeout_s: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._query_url = query_url
        self._page_size = max(1, min(page_size, MAX_ARCGIS_PAGE_SIZE))
        self._timeout_s = timeout_s
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            yield client

    async def fetch(self, query: ParcelQuery) -> list[dict[str, Any]]:
        """Run *query* against MapPLUTO, paging until ``query.limit``.

        Raises:
            UpstreamUnavailableError: Transport failure, timeout, HTTP 429/5xx,
                an unparseable body, or an ArcGIS server-side error code.
            UnexpectedError: ArcGIS rejected the query itself.
        """
        base_params = query.to_params()
        features: list[dict[str, Any]] = []
        offset = 0

        async with self._session() as client:
            while len(features) < query.limit:
                count = min(self._page_size, query.limit - len(features))
                params = {
                    **base_params,
                    "resultRecordCount": str(count),
                    "resultOffset": str(offset),
                }
                page = await self._fetch_page(client, params)
                features.extend(page)
                logger.debug(
                    "MapPLUTO page | offset=%d | requested=%d | received=%d",
                    offset,
                    count,
                    len(page),
                )
                if len(page) < count:
                    break
                offset += len(page)

        logger.info(
            "MapPLUTO query completed | where=%s | rings=%d | features=%d | limit=%d",
            query.where,
            len(query.rings),
            len(features),
            query.limit,
        )
        return features[: query.limit]

    async def _fetch_page(
        self,
        client: httpx.AsyncClient,
        params: dict[str, str],
    ) -> list[dict[str, Any]]:
        try:
            response = await client.post(self._query_url, data=params)
        except httpx.HTTPError as exc:
            msg = f"MapPLUTO request failed: {exc}"
            raise UpstreamUnavailableError(msg, stage=_STAGE, code="MAPPLUTO_UNAVAILABLE") from exc

        if response.status_code == 429 or response.status_code >= 500:
            msg = f"MapPLUTO responded with HTTP {response.status_code}"
            raise UpstreamUnavailableError(msg, stage=_STAGE, code="MAPPLUTO_UNAVAILABLE")
        if response.status_code >= 400:
            msg = f"MapPLUTO rejected the query with HTTP {response.status_code}"
            raise UnexpectedError(msg, stage=_STAGE, code="MAPPLUTO_REJECTED")

        try:
            body = response.json()
        except ValueError as exc:
            msg = "MapPLUTO returned a non-JSON body"
            raise UpstreamUnavailableError(msg, stage=_STAGE, code="MAPPLUTO_UNAVAILABLE") from exc

        if not isinstance(body, dict):
            msg = f"MapPLUTO returned {type(body).__name__}, expected an object"
            raise UnexpectedError(msg, stage=_STAGE, code="MAPPLUTO_BAD_RESPONSE")

        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            detail = error.get("message", "Unknown error") if isinstance(error, dict) else error
            msg = f"ArcGIS error: {detail}"
            if code in _RETRYABLE_ERROR_CODES:
                raise UpstreamUnavailableError(msg, stage=_STAGE, code="MAPPLUTO_UNAVAILABLE")
            raise UnexpectedError(msg, stage=_STAGE, code="MAPPLUTO_REJECTED")

        raw_features = body.get("features")
        if not isinstance(raw_features, list):
            return []
        return [f for f in raw_features if isinstance(f, dict)]
