"""Service configuration loaded from environment variables.

Azure Functions app settings (or ``local.settings.json`` for local dev)
are the source of truth.  ``from_env()`` raises ``ConfigValidationError``
if any value is out of its valid range so that bad configuration is
caught at startup rather than on the first request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from nyc_geochat.core.constants import (
    DEFAULT_MAPPLUTO_QUERY_URL,
    DEFAULT_STORAGE_CONTAINER,
    MAX_ARCGIS_PAGE_SIZE,
)
from nyc_geochat.core.exceptions import GeoChatError

_STORE_BACKENDS = frozenset({"blob", "memory"})
_PARCEL_PROVIDERS = frozenset({"arcgis", "memory"})


class ConfigValidationError(GeoChatError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class GeoChatConfig:
    """Immutable service configuration.

    Attributes:
        storage_container: Blob container holding geometries, chats and areas.
        store_backend: ``blob`` (Azure Blob Storage) or ``memory``.
        parcel_provider: ``arcgis`` (live MapPLUTO) or ``memory``.
        mappluto_query_url: ArcGIS FeatureServer ``/query`` endpoint.
        parcel_page_size: Records requested per ArcGIS page (max 2000).
        parcel_default_limit: Limit used when a request does not give one.
        parcel_max_limit: Upper bound accepted for a request limit.
        upstream_timeout_s: Timeout for a single upstream HTTP call, seconds.
    """

    storage_container: str = DEFAULT_STORAGE_CONTAINER
    store_backend: str = "blob"
    parcel_provider: str = "arcgis"
    mappluto_query_url: str = DEFAULT_MAPPLUTO_QUERY_URL
    parcel_page_size: int = MAX_ARCGIS_PAGE_SIZE
    parcel_default_limit: int = 50
    parcel_max_limit: int = 2000
    upstream_timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> GeoChatConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``PARCEL_PAGE_SIZE=abc``).
        """
        config = cls(
            storage_container=os.getenv("GEOCHAT_STORAGE_CONTAINER", DEFAULT_STORAGE_CONTAINER),
            store_backend=os.getenv("GEOCHAT_STORE_BACKEND", "blob"),
            parcel_provider=os.getenv("PARCEL_PROVIDER", "arcgis"),
            mappluto_query_url=os.getenv("MAPPLUTO_QUERY_URL", DEFAULT_MAPPLUTO_QUERY_URL),
            parcel_page_size=int(os.getenv("PARCEL_PAGE_SIZE", str(MAX_ARCGIS_PAGE_SIZE))),
            parcel_default_limit=int(os.getenv("PARCEL_DEFAULT_LIMIT", "50")),
            parcel_max_limit=int(os.getenv("PARCEL_MAX_LIMIT", "2000")),
            upstream_timeout_s=float(os.getenv("UPSTREAM_TIMEOUT_S", "30")),
        )
        _validate(config)
        return config


def _validate(config: GeoChatConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.storage_container:
        raise ConfigValidationError(
            "GEOCHAT_STORAGE_CONTAINER",
            config.storage_container,
            "must not be empty",
        )

    if config.store_backend not in _STORE_BACKENDS:
        raise ConfigValidationError(
            "GEOCHAT_STORE_BACKEND",
            config.store_backend,
            f"must be one of {', '.join(sorted(_STORE_BACKENDS))}",
        )

    if config.parcel_provider not in _PARCEL_PROVIDERS:
        raise ConfigValidationError(
            "PARCEL_PROVIDER",
            config.parcel_provider,
            f"must be one of {', '.join(sorted(_PARCEL_PROVIDERS))}",
        )

    if not config.mappluto_query_url.startswith(("https://", "http://")):
        raise ConfigValidationError(
            "MAPPLUTO_QUERY_URL",
            config.mappluto_query_url,
            "must be an http(s) URL",
        )

    if not 1 <= config.parcel_page_size <= MAX_ARCGIS_PAGE_SIZE:
        raise ConfigValidationError(
            "PARCEL_PAGE_SIZE",
            config.parcel_page_size,
            f"must be between 1 and {MAX_ARCGIS_PAGE_SIZE}",
        )

    if config.parcel_max_limit < 1:
        raise ConfigValidationError(
            "PARCEL_MAX_LIMIT",
            config.parcel_max_limit,
            "must be >= 1",
        )

    if not 1 <= config.parcel_default_limit <= config.parcel_max_limit:
        raise ConfigValidationError(
            "PARCEL_DEFAULT_LIMIT",
            config.parcel_default_limit,
            f"must be between 1 and PARCEL_MAX_LIMIT ({config.parcel_max_limit})",
        )

    if config.upstream_timeout_s <= 0:
        raise ConfigValidationError(
            "UPSTREAM_TIMEOUT_S",
            config.upstream_timeout_s,
            "must be > 0 (seconds)",
        )
