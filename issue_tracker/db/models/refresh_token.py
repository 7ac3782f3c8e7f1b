"""Refresh token ORM model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from issue_tracker.db.base import Base
from issue_tracker.db.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from .user import User


class RefreshToken(Base):
    """Server-side record of an issued refresh token."""

    __tablename__ = "refresh_tokens"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(Text, nullable=False)  # SHA-256 of token
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="refresh_tokens")

    # Constraints
    __table_args__ = (
        Index("refresh_tokens_token_hash_key", "token_hash", unique=True),
        Index("idx_refresh_user", "user_id", "revoked"),
    )

    def is_active(self, now: datetime) -> bool:
        return not self.revoked and self.expires_at > now

    def __repr__(self) -> str:
        return f"<RefreshToken(id={self.id}, user_id={self.user_id}, revoked={self.revoked})>"
