"""Delete expired and revoked refresh tokens.

Refresh-token rows are never reactivated once expired or revoked, so they
can be removed at any time. Run from cron or by hand.

Usage:
    python scripts/purge_sessions.py [--dry-run]
"""

from datetime import datetime, timezone

from sqlalchemy import func, or_, select

from issue_tracker.config import get_settings
from issue_tracker.db.base import Database
from issue_tracker.db.models.refresh_token import RefreshToken
from issue_tracker.logging_config import configure_logging
from issue_tracker.services.sessions import SessionStore


def purge_sessions(dry_run: bool = False, db: Database | None = None) -> int:
    """Purge dead refresh tokens and return how many rows were (or would be) removed."""
    settings = get_settings()
    configure_logging(settings.log_level)
    owns_db = db is None
    db = db or Database.from_settings(settings)
    now = datetime.now(timezone.utc)

    try:
        with db.session() as session:
            if dry_run:
                count = session.execute(
                    select(func.count())
                    .select_from(RefreshToken)
                    .where(or_(RefreshToken.expires_at <= now, RefreshToken.revoked.is_(True)))
                ).scalar_one()
                print(f"DRY RUN - {count} refresh tokens would be purged")
                return count

            count = SessionStore(session).purge_expired(now)
            print(f"✓ Purged {count} expired or revoked refresh tokens")
            return count
    finally:
        if owns_db:
            db.dispose()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Purge expired and revoked refresh tokens")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only count rows that would be deleted",
    )
    args = parser.parse_args()

    purge_sessions(dry_run=args.dry_run)
