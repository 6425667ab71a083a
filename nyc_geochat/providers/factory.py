"""Provider factory — selects the parcel dataset backend by name.

The backend name is read from the ``PARCEL_PROVIDER`` environment
variable via ``GeoChatConfig.parcel_provider``.  New backends are
registered by adding an entry to ``_PROVIDER_REGISTRY``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nyc_geochat.core.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Callable

    from nyc_geochat.core.config import GeoChatConfig
    from nyc_geochat.providers.base import ParcelProvider

logger = logging.getLogger(__name__)

ARCGIS = "arcgis"
MEMORY = "memory"

_PROVIDER_REGISTRY: dict[str, Callable[[GeoChatConfig], ParcelProvider]] = {}


def _register_builtin_providers() -> None:
    """Register the built-in providers as lazy-import thunks."""

    def _arcgis(config: GeoChatConfig) -> ParcelProvider:
        from nyc_geochat.providers.arcgis import ArcGISParcelProvider

        return ArcGISParcelProvider(
            query_url=config.mappluto_query_url,
            page_size=config.parcel_page_size,
            timeout_s=config.upstream_timeout_s,
        )

    def _memory(config: GeoChatConfig) -> ParcelProvider:  # noqa: ARG001
        from nyc_geochat.providers.memory import InMemoryParcelProvider

        return InMemoryParcelProvider()

    _PROVIDER_REGISTRY[ARCGIS] = _arcgis
    _PROVIDER_REGISTRY[MEMORY] = _memory


def _ensure_registry() -> None:
    if not _PROVIDER_REGISTRY:
        _register_builtin_providers()


def register_provider(name: str, builder: Callable[[GeoChatConfig], ParcelProvider]) -> None:
    """Register a custom parcel provider builder.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Provider name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _PROVIDER_REGISTRY[name] = builder
    logger.debug("Registered parcel provider: %s", name)


def get_provider(config: GeoChatConfig) -> ParcelProvider:
    """Create the parcel provider named by ``config.parcel_provider``.

    Raises:
        InvalidArgumentError: If the name is not registered.
    """
    _ensure_registry()
    builder = _PROVIDER_REGISTRY.get(config.parcel_provider)
    if builder is None:
        available = ", ".join(sorted(_PROVIDER_REGISTRY))
        msg = f"Unknown parcel provider: {config.parcel_provider!r}. Available: {available}"
        raise InvalidArgumentError(msg, stage="config", code="UNKNOWN_PROVIDER")
    logger.info("Creating parcel provider: %s", config.parcel_provider)
    return builder(config)


def list_providers() -> list[str]:
    """Return the names of all registered parcel providers."""
    _ensure_registry()
    return sorted(_PROVIDER_REGISTRY)
