"""Map layer models derived from chat tool outputs.

Layers are ephemeral: they are recomputed from the message log on every
change and never persisted.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from nyc_geochat.models.geometry import Geometry


class LayerKind(enum.Enum):
    """Independently tracked categories of geospatial result."""

    PARKS = "parks"
    CENSUS_BLOCKS = "censusBlocks"
    NEIGHBORHOODS = "neighborhoods"
    SPATIAL_ANALYSIS = "spatialAnalysis"
    MAPPLUTO = "mappluto"
    SCHOOL_ZONES = "schoolZones"
    GEOJSON = "geojson"


@dataclass(frozen=True, slots=True)
class Provenance:
    """Where a layer item came from in the transcript."""

    message_id: str
    tool_name: str


@dataclass(frozen=True, slots=True)
class LayerResult:
    """One geometry-bearing item of a layer.

    Attributes:
        id: Item identifier, unique within its kind.
        kind: Layer kind the item belongs to.
        geometry: Canonical, non-empty geometry.
        attributes: Flat string attributes shown alongside the geometry.
        provenance: Originating message and tool.
    """

    id: str
    kind: LayerKind
    geometry: Geometry
    attributes: Mapping[str, str] = field(default_factory=dict)
    provenance: Provenance = field(default_factory=lambda: Provenance("", ""))

    def __post_init__(self) -> None:
        # Read-only view so a shared result cannot be edited by one consumer.
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "geojson": self.geometry.to_dict(),
            "attributes": dict(self.attributes),
            "provenance": {
                "messageId": self.provenance.message_id,
                "toolName": self.provenance.tool_name,
            },
        }


@dataclass(frozen=True, slots=True)
class LayerState:
    """Observable state of one layer kind.

    Replaced wholesale on every transition; never patched in place.
    """

    items: tuple[LayerResult, ...] = ()
    visible: bool = False

    @property
    def is_populated(self) -> bool:
        return len(self.items) > 0


EMPTY_LAYER = LayerState()
