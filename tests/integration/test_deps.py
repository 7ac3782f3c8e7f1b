"""Tests for the caller-identity dependencies on a probe route."""

import pytest
from fastapi import Depends

from issue_tracker.api.deps import CurrentUser, get_optional_user, require_roles
from issue_tracker.db.models.enums import Role


@pytest.fixture
def probe_client(app, client):
    @app.get("/probe/whoami")
    def whoami(user: CurrentUser | None = Depends(get_optional_user)) -> dict:
        return {"role": user.role.value if user else None}

    @app.get("/probe/support-only")
    def support_only(user: CurrentUser = Depends(require_roles(Role.SUPPORT))) -> dict:
        return {"email": user.email}

    return client


@pytest.mark.integration
class TestOptionalUser:
    """get_optional_user never fails the request."""

    def test_anonymous(self, probe_client):
        assert probe_client.get("/probe/whoami").json() == {"role": None}

    def test_bad_token_is_anonymous(self, probe_client):
        response = probe_client.get("/probe/whoami", headers={"Authorization": "Bearer bad"})
        assert response.json() == {"role": None}

    def test_authenticated(self, probe_client, register_user, headers_for):
        headers = headers_for(register_user("sam@example.com", "SUPPORT"))
        assert probe_client.get("/probe/whoami", headers=headers).json() == {"role": "SUPPORT"}


@pytest.mark.integration
class TestRequireRoles:
    """require_roles answers 401 for anonymous callers and 403 for the wrong role."""

    def test_anonymous_is_unauthorized(self, probe_client):
        assert probe_client.get("/probe/support-only").status_code == 401

    def test_wrong_role_is_forbidden(self, probe_client, register_user, headers_for):
        headers = headers_for(register_user("cus@example.com", "CUSTOMER"))

        response = probe_client.get("/probe/support-only", headers=headers)

        assert response.status_code == 403
        assert response.json()["details"] == "Required roles: SUPPORT"

    def test_allowed_role(self, probe_client, register_user, headers_for):
        headers = headers_for(register_user("sup@example.com", "SUPPORT"))

        response = probe_client.get("/probe/support-only", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"email": "sup@example.com"}
