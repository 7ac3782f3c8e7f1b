"""Domain services. Expected failures are returned as ``Err`` values."""

from .issues import IssueFilter, IssuePage, IssueRepository, NewIssue, build_issue_query
from .sessions import SessionState, SessionStore
from .users import IssuedTokens, RefreshedAccess, UserService

__all__ = [
    "IssueFilter",
    "IssuePage",
    "IssueRepository",
    "NewIssue",
    "build_issue_query",
    "SessionState",
    "SessionStore",
    "IssuedTokens",
    "RefreshedAccess",
    "UserService",
]
