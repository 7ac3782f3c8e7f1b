"""ORM models for database tables."""

from .enums import TERMINAL_STATUSES, IssueStatus, IssueType, Role, Severity
from .issue import Issue
from .refresh_token import RefreshToken
from .user import User

__all__ = [
    "User",
    "RefreshToken",
    "Issue",
    "Role",
    "IssueType",
    "Severity",
    "IssueStatus",
    "TERMINAL_STATUSES",
]
