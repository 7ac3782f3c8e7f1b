"""Issue persistence, filtered listing and triage."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.orm import Session

from issue_tracker.db.models.enums import IssueStatus, IssueType, Severity
from issue_tracker.db.models.issue import Issue
from issue_tracker.db.models.user import User
from issue_tracker.errors import Ok, Result, invalid_reference, not_found, validation_error
from issue_tracker.services.pagination import (
    CursorKey,
    InvalidCursorError,
    clamp_limit,
    decode_cursor,
    encode_cursor,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssueFilter:
    """One optional field per supported predicate. ``None`` means unfiltered."""

    status: IssueStatus | None = None
    severity: Severity | None = None
    type: IssueType | None = None
    q: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    created_by_id: UUID | None = None


@dataclass(frozen=True)
class NewIssue:
    tracking_number: str
    type: IssueType
    description: str
    customer_email: str
    title: str | None = None
    severity: Severity | None = None
    customer_phone: str | None = None


@dataclass(frozen=True)
class IssuePage:
    items: list[Issue]
    cursor: str | None
    next_cursor: str | None
    has_more: bool
    limit: int


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_issue_query(
    filters: IssueFilter,
    after: CursorKey | None = None,
    limit: int | None = None,
) -> Select[tuple[Issue]]:
    """Translate a filter (and optional cursor position) into a SELECT.

    Rows come back newest first, ties on ``created_at`` broken by ``id``
    descending, so the order is total and a cursor resumes exactly after
    the last row served.
    """
    stmt = select(Issue)

    if filters.status is not None:
        stmt = stmt.where(Issue.status == filters.status)
    if filters.severity is not None:
        stmt = stmt.where(Issue.severity == filters.severity)
    if filters.type is not None:
        stmt = stmt.where(Issue.type == filters.type)
    if filters.created_by_id is not None:
        stmt = stmt.where(Issue.created_by_id == filters.created_by_id)
    if filters.created_from is not None:
        stmt = stmt.where(Issue.created_at >= filters.created_from)
    if filters.created_to is not None:
        stmt = stmt.where(Issue.created_at <= filters.created_to)
    if filters.q:
        pattern = f"%{_escape_like(filters.q.lower())}%"
        stmt = stmt.where(
            or_(
                func.lower(func.coalesce(Issue.title, "")).like(pattern, escape="\\"),
                func.lower(Issue.description).like(pattern, escape="\\"),
                func.lower(Issue.tracking_number).like(pattern, escape="\\"),
            )
        )

    if after is not None:
        stmt = stmt.where(
            or_(
                Issue.created_at < after.created_at,
                and_(Issue.created_at == after.created_at, Issue.id < after.id),
            )
        )

    stmt = stmt.order_by(Issue.created_at.desc(), Issue.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


class IssueRepository:
    """CRUD for issues. Callers commit."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, fields: NewIssue, creator: User) -> Issue:
        now = datetime.now(timezone.utc)
        issue = Issue(
            tracking_number=fields.tracking_number,
            type=fields.type,
            severity=fields.severity or Severity.MEDIUM,
            status=IssueStatus.OPEN,
            title=fields.title,
            description=fields.description,
            customer_email=fields.customer_email.lower(),
            customer_phone=fields.customer_phone,
            created_by_id=creator.id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(issue)
        self.session.flush()
        logger.info(
            "Issue created",
            extra={"issue_id": str(issue.id), "created_by": str(creator.id)},
        )
        return issue

    def get(self, issue_id: UUID) -> Result[Issue]:
        issue = self.session.get(Issue, issue_id)
        if issue is None:
            return not_found(f"Issue with ID {issue_id} does not exist")
        return Ok(issue)

    def list(
        self,
        filters: IssueFilter,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> Result[IssuePage]:
        limit = clamp_limit(limit)
        after = None
        if cursor:
            try:
                after = decode_cursor(cursor)
            except InvalidCursorError as e:
                return validation_error(str(e))

        # Over-fetch one row to learn whether another page exists
        rows = list(
            self.session.execute(build_issue_query(filters, after, limit + 1)).scalars()
        )
        has_more = len(rows) > limit
        items = rows[:limit]

        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = encode_cursor(last.created_at, last.id)

        return Ok(
            IssuePage(
                items=items,
                cursor=cursor,
                next_cursor=next_cursor,
                has_more=has_more,
                limit=limit,
            )
        )

    def triage(
        self,
        issue_id: UUID,
        severity: Severity,
        status: IssueStatus | None = None,
        assignee_id: UUID | None = None,
    ) -> Result[Issue]:
        """Apply a privileged severity/status/assignee update.

        Nothing is written unless every reference checks out. Moving into a
        terminal status stamps ``resolved_at``; moving out of one leaves the
        old stamp in place.
        """
        found = self.get(issue_id)
        if not isinstance(found, Ok):
            return found
        issue = found.value

        if assignee_id is not None and self.session.get(User, assignee_id) is None:
            return invalid_reference(f"User with ID {assignee_id} does not exist")

        now = datetime.now(timezone.utc)
        issue.severity = severity
        if status is not None:
            issue.status = status
            if status.is_terminal:
                issue.resolved_at = now
        if assignee_id is not None:
            issue.assigned_to_id = assignee_id
        issue.updated_at = now

        self.session.flush()
        logger.info(
            "Issue triaged",
            extra={
                "issue_id": str(issue.id),
                "severity": severity.value,
                "status": issue.status.value,
            },
        )
        return Ok(issue)
