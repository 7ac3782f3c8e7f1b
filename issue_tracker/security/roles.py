"""Role rules. Every check matches on the full Role enum."""

from typing import assert_never

from issue_tracker.db.models.enums import Role


def can_triage(role: Role) -> bool:
    match role:
        case Role.SUPPORT:
            return True
        case Role.CUSTOMER:
            return False
        case _:
            assert_never(role)


def can_view_all_issues(role: Role) -> bool:
    """Support staff see every issue; customers only their own."""
    match role:
        case Role.SUPPORT:
            return True
        case Role.CUSTOMER:
            return False
        case _:
            assert_never(role)

