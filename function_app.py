"""Azure Functions entry point — NYC Geo Chat spatial core.

This module registers the HTTP routes using the Python v2 programming
model.

All business logic lives in the nyc_geochat package. This file is purely
the wiring layer between Azure Functions bindings and application code.
"""

from __future__ import annotations

import logging

import azure.functions as func

from nyc_geochat.core.config import GeoChatConfig
from nyc_geochat.core.ingress import get_principal, open_services, parse_json_body, respond

app = func.FunctionApp()

logger = logging.getLogger("nyc_geochat.function_app")


# ---------------------------------------------------------------------------
# Area of interest
# ---------------------------------------------------------------------------


@app.function_name("get_chat_area")
@app.route(route="chat/{chat_id}/area", methods=["GET"])
async def get_chat_area(req: func.HttpRequest) -> func.HttpResponse:
    """Return the area of interest of a chat.

    Responses: 200 ``{area}`` (``area`` may be null), 400 invalid id,
    401 no principal, 403 private chat of another user, 404 chat not
    found, 500 unexpected.
    """
    from nyc_geochat.activities.area import lookup_area

    async def operation() -> object:
        async with open_services(GeoChatConfig.from_env()) as services:
            return await lookup_area(
                services.areas,
                req.route_params.get("chat_id", ""),
                get_principal(req),
            )

    return await respond("GET chat/{chat_id}/area", operation)


@app.function_name("define_chat_area")
@app.route(route="chat/{chat_id}/area", methods=["POST"])
async def define_chat_area(req: func.HttpRequest) -> func.HttpResponse:
    """Create or overwrite the area of interest of a chat (owner only).

    Body: ``{"name": str, "summary": str, "geojson": {...}}``.
    """
    from nyc_geochat.activities.area import define_area

    async def operation() -> object:
        principal = get_principal(req)
        body = parse_json_body(req)
        async with open_services(GeoChatConfig.from_env()) as services:
            return await define_area(
                services.areas,
                req.route_params.get("chat_id", ""),
                principal,
                body,
            )

    return await respond("POST chat/{chat_id}/area", operation)


# ---------------------------------------------------------------------------
# Geometry by content id
# ---------------------------------------------------------------------------


@app.function_name("get_geojson")
@app.route(route="geojson/{geojson_id}", methods=["GET"])
async def get_geojson(req: func.HttpRequest) -> func.HttpResponse:
    """Return a stored geometry: 200 ``{geojson}``, 404 missing, 400 otherwise."""
    from nyc_geochat.activities.geojson_lookup import bad_request_on_failure, lookup_geojson

    geojson_id = req.route_params.get("geojson_id", "")

    async def operation() -> object:
        with bad_request_on_failure(geojson_id):
            async with open_services(GeoChatConfig.from_env()) as services:
                return await lookup_geojson(services.geometries, geojson_id)

    return await respond("GET geojson/{geojson_id}", operation)


# ---------------------------------------------------------------------------
# Parcels
# ---------------------------------------------------------------------------


@app.function_name("mappluto_geojson")
@app.route(route="mappluto/geojson", methods=["POST"])
async def mappluto_geojson(req: func.HttpRequest) -> func.HttpResponse:
    """Return parcels for stored geometry ids.

    Body: ``{"geojsonDataIds": [...]}``.  Responses: 200 ``{properties}``,
    400 when the id list is missing or not an array, 500 on backend failure.
    """
    from nyc_geochat.activities.parcels import lookup_parcels_by_geometry_ids

    async def operation() -> object:
        body = parse_json_body(req)
        config = GeoChatConfig.from_env()
        async with open_services(config) as services:
            return await lookup_parcels_by_geometry_ids(
                services.engine,
                services.geometries,
                body,
                limit=config.parcel_max_limit,
            )

    return await respond("POST mappluto/geojson", operation)


@app.function_name("query_chat_parcels")
@app.route(route="chat/{chat_id}/parcels", methods=["POST"])
async def query_chat_parcels(req: func.HttpRequest) -> func.HttpResponse:
    """Run an area-scoped parcel query for a chat.

    Body: ``{"predicates": {...}, "limit": int}``.  Responses: 200
    ``{parcels, count}``, 400, 401, 403, 404 (chat or area missing),
    503 when MapPLUTO is unavailable, 500 unexpected.
    """
    from nyc_geochat.activities.parcels import query_area_parcels

    async def operation() -> object:
        principal = get_principal(req)
        body = parse_json_body(req)
        config = GeoChatConfig.from_env()
        async with open_services(config) as services:
            return await query_area_parcels(
                services.areas,
                services.engine,
                req.route_params.get("chat_id", ""),
                principal,
                body,
                default_limit=config.parcel_default_limit,
            )

    return await respond("POST chat/{chat_id}/parcels", operation)
