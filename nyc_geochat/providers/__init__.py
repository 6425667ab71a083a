"""Parcel dataset providers.

Strategy pattern over the parcel backend:
- ParcelProvider: Abstract base class defining ``fetch(query)``
- ArcGISParcelProvider: Live NYC MapPLUTO FeatureServer
- InMemoryParcelProvider: Fixed feature list evaluated with shapely

The active provider is selected via configuration.
"""

from nyc_geochat.providers.base import ParcelProvider, ParcelQuery
from nyc_geochat.providers.factory import (
    ARCGIS,
    MEMORY,
    get_provider,
    list_providers,
    register_provider,
)

__all__ = [
    "ARCGIS",
    "MEMORY",
    "ParcelProvider",
    "ParcelQuery",
    "get_provider",
    "list_providers",
    "register_provider",
]
