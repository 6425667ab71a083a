"""Shared pytest fixtures for the NYC Geo Chat test suite."""

from __future__ import annotations

from typing import Any

import pytest

from nyc_geochat.activities.spatial_query import SpatialQueryEngine
from nyc_geochat.models.area import ChatRecord
from nyc_geochat.providers.memory import InMemoryParcelProvider
from nyc_geochat.stores.area_registry import AreaRegistry
from nyc_geochat.stores.geometry_store import GeometryStore
from nyc_geochat.stores.memory import InMemoryChatRepository, InMemoryGeoJSONRepository
from tests.factories import (
    OWNER,
    PRIVATE_CHAT_ID,
    PUBLIC_CHAT_ID,
    area_square,
    parcel_feature,
    square,
)

# ---------------------------------------------------------------------------
# Geometry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def area_polygon() -> dict[str, Any]:
    return area_square()


@pytest.fixture()
def parcel_features() -> list[dict[str, Any]]:
    """Three parcels inside ``area_square()`` and one far outside it."""
    return [
        parcel_feature(
            7,
            square(-74.008, 40.702, 0.001),
            BBL=1000070001,
            Borough="MN",
            LotArea=12000,
            LandUse="05",
            YearBuilt=1920,
            ZoneDist1="C5-5",
            Address="7 INSIDE ST",
        ),
        parcel_feature(
            3,
            square(-74.005, 40.705, 0.001),
            BBL=1000030001,
            Borough="MN",
            LotArea=2500,
            LandUse="01",
            YearBuilt=1899,
            ZoneDist1="R6",
            Address="3 INSIDE ST",
        ),
        parcel_feature(
            5,
            square(-74.003, 40.707, 0.001),
            BBL=1000050001,
            Borough="MN",
            LotArea=15000,
            LandUse="05",
            YearBuilt=1965,
            ZoneDist1="R6",
            ZoneDist2="C5-5",
            Address="5 INSIDE ST",
        ),
        parcel_feature(
            1,
            square(-73.90, 40.80, 0.001),
            BBL=2000010001,
            Borough="BX",
            LotArea=50000,
            LandUse="05",
            YearBuilt=1950,
            ZoneDist1="M1-1",
            Address="1 OUTSIDE AVE",
        ),
    ]


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture()
def geojson_repo() -> InMemoryGeoJSONRepository:
    return InMemoryGeoJSONRepository()


@pytest.fixture()
def chat_repo() -> InMemoryChatRepository:
    """A private and a public chat, both owned by ``OWNER``."""
    repo = InMemoryChatRepository()
    repo.add_chat(ChatRecord(id=PRIVATE_CHAT_ID, user_id=OWNER, visibility="private"))
    repo.add_chat(ChatRecord(id=PUBLIC_CHAT_ID, user_id=OWNER, visibility="public"))
    return repo


@pytest.fixture()
def geometry_store(geojson_repo: InMemoryGeoJSONRepository) -> GeometryStore:
    return GeometryStore(geojson_repo)


@pytest.fixture()
def registry(chat_repo: InMemoryChatRepository, geometry_store: GeometryStore) -> AreaRegistry:
    return AreaRegistry(chat_repo, geometry_store)


# ---------------------------------------------------------------------------
# Spatial query
# ---------------------------------------------------------------------------


@pytest.fixture()
def parcel_provider(parcel_features: list[dict[str, Any]]) -> InMemoryParcelProvider:
    return InMemoryParcelProvider(parcel_features)


@pytest.fixture()
def engine(parcel_provider: InMemoryParcelProvider) -> SpatialQueryEngine:
    return SpatialQueryEngine(parcel_provider, max_limit=2000)
