"""Integration tests for the authentication API."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from issue_tracker.db.models.enums import Role
from issue_tracker.security.jwt import create_access_token, create_refresh_token
from issue_tracker.services.sessions import SessionState, SessionStore

PASSWORD = "Passw0rd!"


@pytest.mark.integration
class TestRegister:
    """POST /auth/register"""

    def test_register_returns_user_and_tokens(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "New.User@Example.com", "password": PASSWORD, "name": "New User"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "new.user@example.com"
        assert data["user"]["role"] == "CUSTOMER"
        assert data["user"]["name"] == "New User"
        UUID(data["user"]["id"])
        assert data["user"]["createdAt"].endswith("Z")
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["tokenType"] == "bearer"
        assert data["expiresIn"] == 900

    def test_user_payload_never_contains_password(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "safe@example.com", "password": PASSWORD, "name": "Safe User"},
        )

        body = response.text.lower()
        assert "password" not in body
        assert "$argon2" not in body

    def test_duplicate_email_is_conflict_case_insensitive(self, client, customer):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "ALICE@example.com", "password": PASSWORD, "name": "Alice Again"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Resource conflict"

    def test_weak_password_lists_problems(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "weak@example.com", "password": "password1", "name": "Weak"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Password does not meet requirements"
        assert len(data["details"]["errors"]) == 2

    def test_schema_violations_are_validation_errors(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "not-an-email", "password": "short", "name": "X"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation failed"
        fields = {d["field"] for d in data["details"]}
        assert fields == {"email", "password", "name"}

    def test_register_support_role(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "email": "agent@example.com",
                "password": PASSWORD,
                "name": "Agent",
                "role": "SUPPORT",
            },
        )

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "SUPPORT"


@pytest.mark.integration
class TestLogin:
    """POST /auth/login"""

    def test_login_succeeds(self, client, customer):
        response = client.post(
            "/api/v1/auth/login", json={"email": "Alice@Example.com", "password": PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == customer["user"]["id"]
        assert data["refreshToken"] != customer["refreshToken"]

    @pytest.mark.parametrize(
        "credentials",
        [
            {"email": "alice@example.com", "password": "Wrong0rd!"},
            {"email": "nobody@example.com", "password": PASSWORD},
        ],
    )
    def test_bad_credentials_are_indistinguishable(self, client, customer, credentials):
        response = client.post("/api/v1/auth/login", json=credentials)

        assert response.status_code == 401
        assert response.json() == {
            "error": "Authentication failed",
            "details": "Invalid email or password",
        }
        assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.integration
class TestTokenLifecycle:
    """Refresh, logout and logout-all."""

    def test_refresh_issues_access_token_without_rotation(self, client, customer, headers_for):
        first = client.post(
            "/api/v1/auth/refresh", json={"refreshToken": customer["refreshToken"]}
        )
        second = client.post(
            "/api/v1/auth/refresh", json={"refreshToken": customer["refreshToken"]}
        )

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["expiresIn"] == 900
        me = client.get("/api/v1/auth/me", headers=headers_for(first.json()))
        assert me.status_code == 200

    def test_refresh_with_unknown_token(self, client):
        response = client.post("/api/v1/auth/refresh", json={"refreshToken": "bogus"})

        assert response.status_code == 401
        assert response.json()["details"] == "Invalid or expired refresh token"

    def test_refresh_with_expired_token_deletes_it(self, client, customer, database):
        token = create_refresh_token()
        with database.session_factory() as session:
            SessionStore(session).create(
                UUID(customer["user"]["id"]), token, datetime.now(UTC) - timedelta(seconds=1)
            )
            session.commit()

        response = client.post("/api/v1/auth/refresh", json={"refreshToken": token})

        assert response.status_code == 401
        with database.session_factory() as session:
            assert SessionStore(session).lookup(token) == (SessionState.NOT_FOUND, None)

    def test_logout_revokes_refresh_token(self, client, customer):
        response = client.post(
            "/api/v1/auth/logout", json={"refreshToken": customer["refreshToken"]}
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Successfully logged out"}

        refresh = client.post(
            "/api/v1/auth/refresh", json={"refreshToken": customer["refreshToken"]}
        )
        assert refresh.status_code == 401

    def test_logout_is_idempotent(self, client, customer):
        body = {"refreshToken": customer["refreshToken"]}

        assert client.post("/api/v1/auth/logout", json=body).status_code == 200
        assert client.post("/api/v1/auth/logout", json=body).status_code == 200
        assert (
            client.post("/api/v1/auth/logout", json={"refreshToken": "unknown"}).status_code
            == 200
        )

    def test_logout_all_revokes_only_callers_tokens(
        self, client, customer, support, customer_headers
    ):
        second_login = client.post(
            "/api/v1/auth/login", json={"email": "alice@example.com", "password": PASSWORD}
        ).json()

        response = client.post("/api/v1/auth/logout-all", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["revoked"] == 2
        for token in (customer["refreshToken"], second_login["refreshToken"]):
            assert (
                client.post("/api/v1/auth/refresh", json={"refreshToken": token}).status_code
                == 401
            )
        assert (
            client.post(
                "/api/v1/auth/refresh", json={"refreshToken": support["refreshToken"]}
            ).status_code
            == 200
        )

    def test_logout_all_requires_authentication(self, client):
        assert client.post("/api/v1/auth/logout-all").status_code == 401


@pytest.mark.integration
class TestMe:
    """GET /auth/me and bearer handling."""

    def test_me_returns_current_user(self, client, customer, customer_headers):
        response = client.get("/api/v1/auth/me", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "alice@example.com"

    def test_missing_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json() == {
            "error": "Authentication required",
            "details": "No access token provided",
        }

    def test_garbage_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "Authentication failed"

    def test_expired_token_is_reported_as_expired(self, client, test_settings, customer):
        token = create_access_token(
            UUID(customer["user"]["id"]),
            Role.CUSTOMER,
            test_settings,
            now=datetime.now(UTC) - timedelta(hours=1),
        )

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["details"] == "Access token has expired"

    def test_root_alias_is_equivalent(self, client, customer_headers):
        versioned = client.get("/api/v1/auth/me", headers=customer_headers)
        alias = client.get("/auth/me", headers=customer_headers)

        assert alias.status_code == 200
        assert alias.json() == versioned.json()
