"""Keyset cursor encoding for newest-first listings.

A cursor is URL-safe base64 over ``{"createdAt": <iso8601>, "id": <uuid>}``,
the sort key of the last row a client has seen.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class InvalidCursorError(ValueError):
    """The cursor could not be decoded into a sort key."""


@dataclass(frozen=True)
class CursorKey:
    created_at: datetime
    id: UUID


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, limit))


def encode_cursor(created_at: datetime, row_id: UUID) -> str:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    payload = {
        "createdAt": created_at.astimezone(timezone.utc).isoformat(),
        "id": str(row_id),
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(cursor: str) -> CursorKey:
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        if not isinstance(payload, dict):
            raise TypeError("cursor payload must be an object")
        created_at, row_id = payload["createdAt"], payload["id"]
        if not isinstance(created_at, str) or not isinstance(row_id, str):
            raise TypeError("cursor fields must be strings")
        created_at = datetime.fromisoformat(created_at)
        row_id = UUID(row_id)
    except (binascii.Error, UnicodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise InvalidCursorError("Invalid cursor format") from e

    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return CursorKey(created_at=created_at, id=row_id)
