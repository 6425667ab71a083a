"""Extract geospatial layers from a chat message sequence.

``extract`` is a pure function of the full message sequence: it performs
no I/O, never mutates its input and returns the same result for the same
messages.  Tool output is untrusted mid-stream, so anything malformed is
skipped rather than raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from nyc_geochat.core.constants import ASSISTANT_ROLE, OUTPUT_AVAILABLE, TOOL_PART_PREFIX
from nyc_geochat.core.exceptions import InvalidArgumentError
from nyc_geochat.layers.kinds import (
    GEOJSON_KEY,
    LayerKindDescriptor,
    descriptor_for,
    scalar_attributes,
)
from nyc_geochat.models.geometry import Geometry, has_geometry, strip_envelope
from nyc_geochat.models.layers import LayerKind, LayerResult, Provenance

logger = logging.getLogger("nyc_geochat.layers.extractor")


def tool_name_of(part: Mapping[str, Any]) -> str | None:
    """Return ``toolName`` for a ``"tool-<toolName>"`` part, else ``None``."""
    part_type = part.get("type")
    if isinstance(part_type, str) and part_type.startswith(TOOL_PART_PREFIX):
        return part_type[len(TOOL_PART_PREFIX) :] or None
    return None


def qualifying_output(part: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """Return the part's output if it is available and error-free."""
    if part.get("state") != OUTPUT_AVAILABLE:
        return None
    output = part.get("output")
    if not isinstance(output, Mapping) or "error" in output:
        return None
    return output


def iter_tool_outputs(messages: Sequence[Mapping[str, Any]]):
    """Yield ``(message_index, message, part_index, tool_name, output)``.

    Only assistant messages and qualifying tool parts are yielded.
    """
    for m_index, message in enumerate(messages):
        if not isinstance(message, Mapping) or message.get("role") != ASSISTANT_ROLE:
            continue
        parts = message.get("parts")
        if not isinstance(parts, list):
            continue
        for p_index, part in enumerate(parts):
            if not isinstance(part, Mapping):
                continue
            tool_name = tool_name_of(part)
            if tool_name is None:
                continue
            output = qualifying_output(part)
            if output is None:
                continue
            yield m_index, message, p_index, tool_name, output


def _to_geometry(raw: object, *, strip: bool) -> Geometry | None:
    if not has_geometry(raw):
        return None
    data = strip_envelope(raw) if strip else raw  # type: ignore[arg-type]
    try:
        geometry = Geometry.from_geojson(data)
    except InvalidArgumentError:
        return None
    return geometry


def _results_for(
    descriptor: LayerKindDescriptor,
    messages: Sequence[Mapping[str, Any]],
) -> list[LayerResult]:
    results: list[LayerResult] = []
    for m_index, message, p_index, tool_name, output in iter_tool_outputs(messages):
        if not descriptor.accepts_tool(tool_name):
            continue
        message_id = str(message.get("id") or m_index)
        enrichment = descriptor.enrich(output)
        for i_index, item in enumerate(descriptor.collect(output)):
            geometry = _to_geometry(item.get(GEOJSON_KEY), strip=descriptor.strip_envelope)
            if geometry is None:
                continue
            item_id = descriptor.item_id(item, output) or f"{message_id}:{p_index}:{i_index}"
            results.append(
                LayerResult(
                    id=item_id,
                    kind=descriptor.kind,
                    geometry=geometry,
                    attributes={**scalar_attributes(item), **enrichment},
                    provenance=Provenance(message_id=message_id, tool_name=tool_name),
                )
            )
    return results


def extract(
    messages: Sequence[Mapping[str, Any]],
    kind: LayerKind,
) -> tuple[LayerResult, ...]:
    """Return the layer items of *kind* found in *messages*.

    Items sharing an id collapse to the latest occurrence, kept at the
    position of the first.
    """
    descriptor = descriptor_for(kind)
    deduped: dict[str, LayerResult] = {}
    for result in _results_for(descriptor, messages):
        deduped[result.id] = result
    if deduped:
        logger.debug("Layer extracted | kind=%s | items=%d", kind.value, len(deduped))
    return tuple(deduped.values())


def extract_all(
    messages: Sequence[Mapping[str, Any]],
) -> dict[LayerKind, tuple[LayerResult, ...]]:
    """Run ``extract`` for every layer kind."""
    return {kind: extract(messages, kind) for kind in LayerKind}
