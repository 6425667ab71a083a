"""Unified error taxonomy.

Every domain exception inherits from ``GeoChatError`` and carries
structured context fields so that boundary operations can map any
failure to an HTTP status and a stable error payload.

Taxonomy categories
-------------------
- ``InvalidArgumentError``     — malformed or missing input (400), not retryable.
- ``UnauthenticatedError``     — no principal on the request (401).
- ``AccessDeniedError``        — principal may not read the resource (403).
- ``NotFoundError``            — referenced entity absent (404).
- ``UpstreamUnavailableError`` — dataset or store unreachable (503), retryable.
- ``UnexpectedError``          — anything else (500), detail never exposed.

Every exception exposes ``to_error_dict()`` for logging and
``to_response_body()`` for the caller-facing payload.
"""

from __future__ import annotations


class GeoChatError(Exception):
    """Base exception for all geo-chat domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"geometry_store"``, ``"spatial_query"``).
        code: Machine-readable error code (e.g. ``"GEOMETRY_NOT_FOUND"``).
        retryable: Whether the caller may retry the operation.
        status_code: HTTP status used by the boundary layer.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = "UNEXPECTED"
    #: HTTP status the boundary layer responds with.
    status_code: int = 500

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, InvalidArgumentError):
            return "invalid_argument"
        if isinstance(self, UnauthenticatedError):
            return "unauthenticated"
        if isinstance(self, AccessDeniedError):
            return "access_denied"
        if isinstance(self, NotFoundError):
            return "not_found"
        if isinstance(self, UpstreamUnavailableError):
            return "upstream_unavailable"
        return "unexpected"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys, for logging."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
        }

    def to_response_body(self) -> dict[str, object]:
        """Return the payload sent back to HTTP callers."""
        return {"error": self.message, "code": self.code}


# ---------------------------------------------------------------------------
# Category classes
# ---------------------------------------------------------------------------


class InvalidArgumentError(GeoChatError):
    """Malformed or missing required input. Never retryable."""

    default_code = "INVALID_ARGUMENT"
    status_code = 400

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class UnauthenticatedError(GeoChatError):
    """The request carries no authenticated principal."""

    default_code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Unauthorized", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class AccessDeniedError(GeoChatError):
    """Authorization failure. Not retryable without different credentials."""

    default_code = "ACCESS_DENIED"
    status_code = 403

    def __init__(self, message: str = "Access denied", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class NotFoundError(GeoChatError):
    """Referenced entity is absent. Not retryable without a new id."""

    default_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class UpstreamUnavailableError(GeoChatError):
    """Backend dataset or geometry store unreachable. Retryable with backoff."""

    default_code = "UPSTREAM_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class UnexpectedError(GeoChatError):
    """Any other internal failure. Surfaced as a generic message."""

    default_code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "Internal server error", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
