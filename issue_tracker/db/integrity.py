"""Translate constraint violations into service errors."""

import logging

from sqlalchemy.exc import IntegrityError

from issue_tracker.errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

# SQLSTATE codes (PostgreSQL)
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def classify_integrity_error(exc: IntegrityError) -> ServiceError:
    """Map a unique/foreign-key violation to Conflict/InvalidReference.

    Anything else is reported as an internal error; raw driver text never
    reaches the client.
    """
    code = _sqlstate(exc)
    message = str(exc.orig).lower()

    if code == UNIQUE_VIOLATION or "unique constraint" in message:
        return ServiceError(
            ErrorKind.CONFLICT, "Resource conflict", "A record with this value already exists"
        )
    if code == FOREIGN_KEY_VIOLATION or "foreign key constraint" in message:
        return ServiceError(
            ErrorKind.INVALID_REFERENCE,
            "Invalid reference",
            "Referenced resource does not exist",
        )

    logger.error("Unclassified integrity error", extra={"sqlstate": code})
    return ServiceError(ErrorKind.INTERNAL, "Database error")
