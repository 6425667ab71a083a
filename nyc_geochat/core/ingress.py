"""Thin ingress boundary helpers for the Azure Functions HTTP routes.

Centralises the cross-cutting transport concerns so that
``function_app.py`` contains only route bindings and handoff:

- **parse_json_body** — decodes a request body into a JSON object,
  failing with ``InvalidArgumentError`` on anything else.
- **get_principal** — reads the authenticated user id set by App Service
  authentication.
- **json_response / error_response** — build ``func.HttpResponse``
  objects with a JSON body; errors never expose internal detail.
- **open_services** — builds the geometry store, area registry and
  spatial query engine for one request from ``GeoChatConfig``, opening
  the async blob container client from ``AzureWebJobsStorage``.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import azure.functions as func

from nyc_geochat.core.constants import PRINCIPAL_HEADER
from nyc_geochat.core.exceptions import (
    GeoChatError,
    InvalidArgumentError,
    UnexpectedError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from azure.storage.blob.aio import ContainerClient

    from nyc_geochat.activities.spatial_query import SpatialQueryEngine
    from nyc_geochat.core.config import GeoChatConfig
    from nyc_geochat.stores.area_registry import AreaRegistry
    from nyc_geochat.stores.geometry_store import GeometryStore

logger = logging.getLogger("nyc_geochat.core.ingress")

_JSON_MIMETYPE = "application/json"


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------


def parse_json_body(req: func.HttpRequest) -> dict[str, Any]:
    """Return the request body as a JSON object.

    Raises:
        InvalidArgumentError: If the body is empty, not valid JSON, or not
            an object.
    """
    try:
        parsed = req.get_json()
    except ValueError as exc:
        msg = "Request body is not valid JSON"
        raise InvalidArgumentError(msg, stage="ingress", code="INVALID_JSON") from exc
    if not isinstance(parsed, dict):
        msg = f"Request body must be a JSON object, got {type(parsed).__name__}"
        raise InvalidArgumentError(msg, stage="ingress", code="INVALID_INPUT_TYPE")
    return parsed


def get_principal(req: func.HttpRequest) -> str | None:
    """Return the authenticated principal id, or ``None`` if absent."""
    principal = (req.headers.get(PRINCIPAL_HEADER) or "").strip()
    return principal or None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def json_response(body: object, *, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body),
        status_code=status_code,
        mimetype=_JSON_MIMETYPE,
    )


def error_response(exc: GeoChatError) -> func.HttpResponse:
    """Map a taxonomy error to its HTTP status and caller-facing body."""
    return json_response(exc.to_response_body(), status_code=exc.status_code)


async def respond(
    route: str,
    operation: Callable[[], Awaitable[object]],
) -> func.HttpResponse:
    """Run *operation* and turn its result or failure into a response.

    Taxonomy errors keep their status; anything else is logged with its
    traceback and surfaced as a generic 500.
    """
    try:
        body = await operation()
    except GeoChatError as exc:
        log = logger.error if exc.status_code >= 500 else logger.info
        log("Request failed | route=%s | error=%s", route, exc.to_error_dict())
        return error_response(exc)
    except Exception:
        logger.exception("Unhandled error | route=%s", route)
        return error_response(UnexpectedError(stage="ingress"))
    return json_response(body)


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Services:
    """Per-request collaborators handed to the boundary operations."""

    config: GeoChatConfig
    geometries: GeometryStore
    areas: AreaRegistry
    engine: SpatialQueryEngine


def get_container_client(config: GeoChatConfig) -> ContainerClient:
    """Create an async ``ContainerClient`` from the ``AzureWebJobsStorage`` env var.

    Raises:
        UnexpectedError: If the environment variable is not set.
    """
    from azure.storage.blob.aio import ContainerClient

    connection_string = os.environ.get("AzureWebJobsStorage", "")  # noqa: SIM112
    if not connection_string:
        msg = "AzureWebJobsStorage environment variable is not set"
        raise UnexpectedError(msg, stage="ingress", code="MISSING_CONNECTION_STRING")

    return ContainerClient.from_connection_string(
        connection_string,
        container_name=config.storage_container,
    )


_memory_repositories: tuple[Any, Any] | None = None


def _memory_backend() -> tuple[Any, Any]:
    """Process-wide in-memory repositories, created on first use."""
    global _memory_repositories  # noqa: PLW0603
    if _memory_repositories is None:
        from nyc_geochat.stores.memory import InMemoryChatRepository, InMemoryGeoJSONRepository

        _memory_repositories = (InMemoryGeoJSONRepository(), InMemoryChatRepository())
    return _memory_repositories


@asynccontextmanager
async def open_services(config: GeoChatConfig) -> AsyncIterator[Services]:
    """Yield the collaborators for one request, closing storage afterwards."""
    from nyc_geochat.activities.spatial_query import SpatialQueryEngine
    from nyc_geochat.providers.factory import get_provider
    from nyc_geochat.stores.area_registry import AreaRegistry
    from nyc_geochat.stores.geometry_store import GeometryStore

    engine = SpatialQueryEngine(get_provider(config), max_limit=config.parcel_max_limit)

    if config.store_backend == "memory":
        geojson_repo, chat_repo = _memory_backend()
        geometries = GeometryStore(geojson_repo)
        yield Services(config, geometries, AreaRegistry(chat_repo, geometries), engine)
        return

    from nyc_geochat.stores.blob import BlobChatRepository, BlobGeoJSONRepository

    async with get_container_client(config) as container:
        geometries = GeometryStore(BlobGeoJSONRepository(container))
        areas = AreaRegistry(BlobChatRepository(container), geometries)
        yield Services(config, geometries, areas, engine)
