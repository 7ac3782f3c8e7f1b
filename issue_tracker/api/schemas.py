"""Request validators and response models (camelCase on the wire)."""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer
from pydantic.alias_generators import to_camel

from issue_tracker.db.models.enums import IssueStatus, IssueType, Role, Severity
from issue_tracker.db.models.issue import Issue
from issue_tracker.db.models.user import User
from issue_tracker.services.issues import IssuePage

PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# Auth


class RegisterRequest(CamelModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=2, max_length=100)
    role: Role = Role.CUSTOMER


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class UserPublic(CamelModel):
    """User as exposed over the API. Never carries the password hash."""

    id: UUID
    email: str
    name: str
    role: Role
    created_at: datetime

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str | None:
        return _iso(value)

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            created_at=user.created_at,
        )


class AuthResponse(CamelModel):
    user: UserPublic
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class AccessTokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class MessageResponse(CamelModel):
    message: str


class LogoutAllResponse(CamelModel):
    message: str
    revoked: int


class MeResponse(CamelModel):
    user: UserPublic


# Issues


class CreateIssueRequest(CamelModel):
    tracking_number: str = Field(min_length=3, max_length=50)
    type: IssueType
    title: str | None = Field(default=None, min_length=5, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    severity: Severity | None = None
    customer_email: EmailStr | None = None
    customer_phone: str | None = Field(default=None, pattern=PHONE_PATTERN, max_length=30)


class TriageIssueRequest(CamelModel):
    severity: Severity
    status: IssueStatus | None = None
    assigned_to: UUID | None = None


class IssueResponse(CamelModel):
    id: UUID
    tracking_number: str
    type: IssueType
    severity: Severity
    status: IssueStatus
    title: str | None
    description: str
    customer_email: str
    customer_phone: str | None
    assigned_to: UUID | None
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None

    @field_serializer("created_at", "updated_at", "resolved_at")
    def _serialize_timestamps(self, value: datetime | None) -> str | None:
        return _iso(value)

    @classmethod
    def from_issue(cls, issue: Issue) -> "IssueResponse":
        return cls(
            id=issue.id,
            tracking_number=issue.tracking_number,
            type=issue.type,
            severity=issue.severity,
            status=issue.status,
            title=issue.title,
            description=issue.description,
            customer_email=issue.customer_email,
            customer_phone=issue.customer_phone,
            assigned_to=issue.assigned_to_id,
            created_by=issue.created_by_id,
            created_at=issue.created_at,
            updated_at=issue.updated_at,
            resolved_at=issue.resolved_at,
        )


class PaginationInfo(CamelModel):
    cursor: str | None = None
    next_cursor: str | None = None
    has_more: bool
    limit: int


class IssueListResponse(CamelModel):
    data: list[IssueResponse]
    pagination: PaginationInfo

    @classmethod
    def from_page(cls, page: IssuePage) -> "IssueListResponse":
        return cls(
            data=[IssueResponse.from_issue(issue) for issue in page.items],
            pagination=PaginationInfo(
                cursor=page.cursor,
                next_cursor=page.next_cursor,
                has_more=page.has_more,
                limit=page.limit,
            ),
        )
