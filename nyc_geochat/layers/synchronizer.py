"""Keep per-kind layer state consistent with a growing message sequence.

One ``LayerSynchronizer`` exists per chat session.  Each layer kind is a
two-state machine:

- **Empty** — no items, not visible.
- **Populated** — one or more items.

``sync`` re-runs extraction when the message sequence changes.  A
non-empty extraction replaces the items wholesale and makes the layer
visible; an empty extraction moves a Populated layer to Empty exactly
once and is a no-op on an Empty layer.  States are replaced, never
patched, so a reader never observes a half-updated layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from nyc_geochat.layers.extractor import extract
from nyc_geochat.models.layers import EMPTY_LAYER, LayerKind, LayerResult, LayerState

logger = logging.getLogger("nyc_geochat.layers.synchronizer")

Listener = Callable[[LayerKind, LayerState], None]
Extractor = Callable[[Sequence[Mapping[str, Any]], LayerKind], tuple[LayerResult, ...]]


class LayerSynchronizer:
    """Derived layer state for one chat session.

    Args:
        kinds: Layer kinds to track (default: all).
        extractor: Extraction function, ``extract`` unless overridden.
    """

    def __init__(
        self,
        kinds: Iterable[LayerKind] = tuple(LayerKind),
        *,
        extractor: Extractor = extract,
    ) -> None:
        self._states: dict[LayerKind, LayerState] = {k: EMPTY_LAYER for k in kinds}
        self._extractor = extractor
        self._listeners: list[Listener] = []
        self._seen: Sequence[Mapping[str, Any]] | None = None
        self._seen_len = -1

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def state(self, kind: LayerKind) -> LayerState:
        return self._states[kind]

    @property
    def states(self) -> Mapping[LayerKind, LayerState]:
        """Read-only snapshot of every tracked kind."""
        return MappingProxyType(dict(self._states))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with ``(kind, state)`` on every real transition.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def sync(self, messages: Sequence[Mapping[str, Any]]) -> bool:
        """Re-derive every layer from *messages*.

        Extraction is skipped when *messages* is the same object, with the
        same length, as on the previous call.  A part updated in place, such
        as a tool call moving to ``output-available``, is therefore not seen
        until the caller passes a new sequence (``list(messages)`` will do).

        Returns:
            ``True`` if any layer state changed.
        """
        if messages is self._seen and len(messages) == self._seen_len:
            return False
        self._seen = messages
        self._seen_len = len(messages)

        changed = False
        for kind in self._states:
            items = self._extractor(messages, kind)
            if items:
                changed |= self._set(kind, LayerState(items=tuple(items), visible=True))
            elif self._states[kind].is_populated:
                changed |= self._set(kind, EMPTY_LAYER)
        return changed

    def clear(self, kind: LayerKind | None = None) -> None:
        """Force *kind* (or every kind) to Empty, regardless of extraction."""
        for k in [kind] if kind is not None else list(self._states):
            self._set(k, EMPTY_LAYER)

    def set_visible(self, kind: LayerKind, visible: bool) -> None:
        """Show or hide a layer without touching its items."""
        self._set(kind, replace(self._states[kind], visible=visible))

    def toggle(self, kind: LayerKind) -> bool:
        """Flip a layer's visibility and return the new value."""
        visible = not self._states[kind].visible
        self.set_visible(kind, visible)
        return visible

    def _set(self, kind: LayerKind, new: LayerState) -> bool:
        old = self._states[kind]
        if new == old:
            return False
        self._states[kind] = new
        logger.debug(
            "Layer transition | kind=%s | items=%d->%d | visible=%s->%s",
            kind.value,
            len(old.items),
            len(new.items),
            old.visible,
            new.visible,
        )
        for listener in list(self._listeners):
            listener(kind, new)
        return True
