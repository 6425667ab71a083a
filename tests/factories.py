"""Test data builders shared across the unit tests."""

from __future__ import annotations

from typing import Any

OWNER = "user-owner"
STRANGER = "user-stranger"

PRIVATE_CHAT_ID = "1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b"
PUBLIC_CHAT_ID = "6fa459ea-ee8a-4ca4-894e-db77e160355e"
MISSING_CHAT_ID = "0d3f2b9c-1111-4a2b-8c3d-9e8f7a6b5c4d"


def square(x0: float, y0: float, size: float) -> dict[str, Any]:
    """Counter-clockwise GeoJSON square with its lower-left corner at (x0, y0)."""
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [x0, y0],
                [x0 + size, y0],
                [x0 + size, y0 + size],
                [x0, y0 + size],
                [x0, y0],
            ]
        ],
    }


def parcel_feature(object_id: int, geometry: dict[str, Any] | None, **props: Any) -> dict[str, Any]:
    """MapPLUTO-shaped GeoJSON feature."""
    return {
        "type": "Feature",
        "id": object_id,
        "geometry": geometry,
        "properties": {"OBJECTID": object_id, **props},
    }


def area_square() -> dict[str, Any]:
    """A 0.01° square in lower Manhattan used as the area of interest."""
    return square(-74.01, 40.70, 0.01)


def tool_part(tool: str, output: Any, *, state: str = "output-available") -> dict[str, Any]:
    return {"type": f"tool-{tool}", "toolCallId": f"call-{tool}", "state": state, "output": output}


def assistant(message_id: str, *parts: dict[str, Any]) -> dict[str, Any]:
    return {"id": message_id, "role": "assistant", "parts": list(parts)}


def user(message_id: str, *parts: dict[str, Any]) -> dict[str, Any]:
    return {"id": message_id, "role": "user", "parts": list(parts)}
