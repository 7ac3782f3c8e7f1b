"""Issue API endpoints: create, list, fetch and triage."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from issue_tracker.api.deps import (
    CurrentUser,
    get_current_user,
    get_db_session,
    require_permission,
)
from issue_tracker.api.schemas import (
    CreateIssueRequest,
    IssueListResponse,
    IssueResponse,
    TriageIssueRequest,
)
from issue_tracker.db.models.enums import IssueStatus, IssueType, Severity
from issue_tracker.db.models.user import User
from issue_tracker.errors import ApiError, ErrorKind, unwrap
from issue_tracker.security.roles import can_triage, can_view_all_issues
from issue_tracker.services.issues import IssueFilter, IssueRepository, NewIssue

router = APIRouter(prefix="/issues", tags=["issues"])

require_triage = require_permission(can_triage, "Required roles: SUPPORT")


@router.post("", response_model=IssueResponse, status_code=status.HTTP_201_CREATED)
def create_issue(
    request: CreateIssueRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> IssueResponse:
    """Report a delivery issue. Status starts OPEN.

    Only support staff may pick the initial severity; for everyone else it
    is MEDIUM and changes only through triage.
    """
    creator = session.get(User, current_user.user_id)
    fields = NewIssue(
        tracking_number=request.tracking_number.strip(),
        type=request.type,
        title=request.title,
        description=request.description,
        severity=request.severity if can_triage(current_user.role) else None,
        customer_email=request.customer_email or current_user.email,
        customer_phone=request.customer_phone,
    )
    issue = IssueRepository(session).create(fields, creator)
    session.commit()
    return IssueResponse.from_issue(issue)


@router.get("", response_model=IssueListResponse)
def list_issues(
    status_filter: IssueStatus | None = Query(None, alias="status"),
    severity: Severity | None = Query(None),
    type_filter: IssueType | None = Query(None, alias="type"),
    q: str | None = Query(None, min_length=1, max_length=100, description="Search title, description and tracking number"),
    created_from: datetime | None = Query(None, alias="from"),
    created_to: datetime | None = Query(None, alias="to"),
    cursor: str | None = Query(None),
    limit: int | None = Query(None, description="Page size, clamped to 1..100"),
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> IssueListResponse:
    """List issues newest first. Customers only ever see issues they filed."""
    filters = IssueFilter(
        status=status_filter,
        severity=severity,
        type=type_filter,
        q=q,
        created_from=created_from,
        created_to=created_to,
        created_by_id=None if can_view_all_issues(current_user.role) else current_user.user_id,
    )
    page = unwrap(IssueRepository(session).list(filters, cursor, limit))
    return IssueListResponse.from_page(page)


@router.get("/{issue_id}", response_model=IssueResponse)
def get_issue(
    issue_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> IssueResponse:
    issue = unwrap(IssueRepository(session).get(issue_id))
    if not can_view_all_issues(current_user.role) and issue.created_by_id != current_user.user_id:
        raise ApiError(
            ErrorKind.FORBIDDEN, "Insufficient permissions", "You can only view your own issues"
        )
    return IssueResponse.from_issue(issue)


@router.patch("/{issue_id}/triage", response_model=IssueResponse)
def triage_issue(
    issue_id: UUID,
    request: TriageIssueRequest,
    current_user: CurrentUser = Depends(require_triage),
    session: Session = Depends(get_db_session),
) -> IssueResponse:
    """Set severity, and optionally status and assignee (support only)."""
    issue = unwrap(
        IssueRepository(session).triage(
            issue_id,
            severity=request.severity,
            status=request.status,
            assignee_id=request.assigned_to,
        )
    )
    session.commit()
    return IssueResponse.from_issue(issue)
