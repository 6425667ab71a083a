"""Shared helper functions used across stores and activities."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from nyc_geochat.core.exceptions import InvalidArgumentError


def validate_uuid(value: object, *, field_name: str, stage: str) -> str:
    """Return *value* as a canonical lower-case UUID string.

    Chat ids and geometry content ids are both UUIDs.

    Raises:
        InvalidArgumentError: If *value* is empty or not a UUID.
    """
    text = str(value).strip() if value is not None else ""
    if not text:
        msg = f"{field_name} is required"
        raise InvalidArgumentError(msg, stage=stage, code="MISSING_ID")
    try:
        return str(uuid.UUID(text))
    except ValueError as exc:
        msg = f"{field_name} is not a valid identifier: {text!r}"
        raise InvalidArgumentError(msg, stage=stage, code="INVALID_ID") from exc


def new_content_id() -> str:
    """Return a fresh geometry content id."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()
