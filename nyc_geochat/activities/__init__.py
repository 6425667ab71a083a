"""Boundary operations and the spatial query engine.

- area: Look up and define a chat's area of interest
- geojson_lookup: Stored geometry by content id
- parcels: Geometry-id and area-scoped parcel queries
- spatial_query: SpatialQueryEngine over a ParcelProvider
"""
