"""Delivery issue ORM model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Enum, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from issue_tracker.db.base import Base
from issue_tracker.db.models.enums import IssueStatus, IssueType, Severity
from issue_tracker.db.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from .user import User


class Issue(Base):
    """A reported problem with a shipment.

    ``resolved_at`` is stamped when triage moves the issue into a terminal
    status and is left as-is if the issue is later reopened.
    """

    __tablename__ = "issues"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tracking_number: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[IssueType] = mapped_column(
        Enum(IssueType, name="issue_type"), nullable=False
    )
    severity: Mapped[Severity] = mapped_column(
        Enum(Severity, name="severity"), nullable=False, default=Severity.MEDIUM
    )
    status: Mapped[IssueStatus] = mapped_column(
        Enum(IssueStatus, name="issue_status"), nullable=False, default=IssueStatus.OPEN
    )
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    customer_email: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    assigned_to_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow
    )
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Relationships
    created_by: Mapped["User"] = relationship("User", foreign_keys=[created_by_id])
    assigned_to: Mapped["User | None"] = relationship(
        "User", foreign_keys=[assigned_to_id]
    )

    # Constraints
    __table_args__ = (
        Index("idx_issues_created_id", "created_at", "id"),
        Index("idx_issues_status", "status"),
        Index("idx_issues_created_by", "created_by_id"),
        Index("idx_issues_tracking_number", "tracking_number"),
    )

    def __repr__(self) -> str:
        return (
            f"<Issue(id={self.id}, tracking_number={self.tracking_number!r}, "
            f"status={self.status.value})>"
        )
