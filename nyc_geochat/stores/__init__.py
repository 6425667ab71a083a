"""Geometry store, area registry and their storage repositories.

- GeometryStore: Resolve stored geometries by content id
- AreaRegistry: Per-chat area of interest behind the chat access gate
- base: Repository abstract base classes
- blob / memory: Azure Blob Storage and in-memory repositories
"""

from nyc_geochat.stores.area_registry import AreaRegistry
from nyc_geochat.stores.geometry_store import GeometryStore

__all__ = ["AreaRegistry", "GeometryStore"]
