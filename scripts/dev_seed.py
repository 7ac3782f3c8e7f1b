"""Development database seeding script.

Creates demo users and issues for local development. Idempotent - safe to run
multiple times.

Usage:
    python scripts/dev_seed.py
"""

from sqlalchemy import select

from issue_tracker.config import Settings, get_settings
from issue_tracker.db.base import Database
from issue_tracker.db.models import Issue, IssueType, Role, Severity, User
from issue_tracker.security.passwords import hash_password
from issue_tracker.services.issues import IssueRepository, NewIssue

DEMO_PASSWORD = "DemoPass123!"

DEMO_USERS = [
    ("customer@example.com", "Demo Customer", Role.CUSTOMER),
    ("support@example.com", "Demo Support", Role.SUPPORT),
]

DEMO_ISSUES = [
    NewIssue(
        tracking_number="1Z999AA10123456784",
        type=IssueType.DAMAGED,
        title="Box crushed in transit",
        description="The outer box was crushed and two mugs inside are broken.",
        customer_email="customer@example.com",
        severity=Severity.HIGH,
    ),
    NewIssue(
        tracking_number="9400111899223197428490",
        type=IssueType.LATE,
        description="Delivery was promised three days ago and has not arrived.",
        customer_email="customer@example.com",
    ),
    NewIssue(
        tracking_number="TBA123456789000",
        type=IssueType.LOST,
        title="Marked delivered but never received",
        description="Tracking says delivered to the front door, nothing was there.",
        customer_email="customer@example.com",
        customer_phone="+1 (555) 010-2030",
        severity=Severity.CRITICAL,
    ),
]


def seed_database(settings: Settings | None = None, db: Database | None = None) -> None:
    """Seed the database with demo data."""
    settings = settings or get_settings()
    owns_db = db is None
    db = db or Database.from_settings(settings)
    db.create_schema()

    with db.session() as session:
        users = {}
        for email, name, role in DEMO_USERS:
            existing = session.execute(
                select(User).where(User.email == email)
            ).scalar_one_or_none()

            if existing:
                print(f"✓ User '{email}' already exists (ID: {existing.id})")
                users[role] = existing
                continue

            user = User(
                email=email,
                password_hash=hash_password(DEMO_PASSWORD, settings),
                name=name,
                role=role,
            )
            session.add(user)
            session.flush()
            print(f"✓ Created {role.value} user '{email}' (ID: {user.id})")
            users[role] = user

        repo = IssueRepository(session)
        customer = users[Role.CUSTOMER]
        for fields in DEMO_ISSUES:
            existing = session.execute(
                select(Issue).where(Issue.tracking_number == fields.tracking_number)
            ).scalar_one_or_none()

            if existing:
                print(f"✓ Issue '{fields.tracking_number}' already exists (ID: {existing.id})")
                continue

            issue = repo.create(fields, customer)
            print(f"✓ Created {issue.type.value} issue '{issue.tracking_number}' (ID: {issue.id})")

    if owns_db:
        db.dispose()
    print("\n✅ Database seeded successfully!")
    print(f"   Login with any demo user and password '{DEMO_PASSWORD}'")


if __name__ == "__main__":
    seed_database()
