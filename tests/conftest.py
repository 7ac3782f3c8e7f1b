"""Pytest configuration and fixtures for testing."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from issue_tracker.config import Settings
from issue_tracker.db.base import Base, Database
from issue_tracker.db.models.enums import Role
from issue_tracker.db.models.user import User
from issue_tracker.main import create_app
from issue_tracker.security.passwords import hash_password

TEST_PASSWORD = "Passw0rd!"


def make_settings(**overrides) -> Settings:
    """Test settings: in-memory SQLite, cheap hashing, no rate limiting."""
    values = {
        "app_env": "test",
        "database_url": "sqlite:///:memory:",
        "auto_create_schema": False,
        "jwt_secret": "test-secret-key-for-unit-tests-only",
        "password_time_cost": 1,
        "password_memory_cost": 8,
        "rate_limit_enabled": False,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture(scope="function")
def database(test_settings: Settings):
    """Create a test database with in-memory SQLite."""
    db = Database.from_settings(test_settings)
    db.create_schema()

    yield db

    # Cleanup
    Base.metadata.drop_all(db.engine)
    db.dispose()


@pytest.fixture(scope="function")
def test_session(database: Database):
    """Create a test database session."""
    session = database.session_factory()

    yield session

    session.close()


@pytest.fixture(scope="function")
def make_user(test_session: Session, test_settings: Settings) -> Callable[..., User]:
    """Factory inserting a user directly, bypassing the API."""

    def _make_user(email: str = "customer@example.com", role: Role = Role.CUSTOMER) -> User:
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD, test_settings),
            name=email.split("@")[0].title(),
            role=role,
        )
        test_session.add(user)
        test_session.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
def app(test_settings: Settings, database: Database):
    return create_app(test_settings, database=database)


@pytest.fixture(scope="function")
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


def _register(client: TestClient, email: str, role: str, name: str) -> dict:
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": TEST_PASSWORD, "name": name, "role": role},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture(scope="function")
def register_user(client: TestClient) -> Callable[..., dict]:
    """Register through the API and return the auth response body."""

    def _register_user(email: str, role: str = "CUSTOMER", name: str = "Test User") -> dict:
        return _register(client, email, role, name)

    return _register_user


def bearer(tokens: dict) -> dict[str, str]:
    """Authorization header for an auth response body."""
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


@pytest.fixture(scope="function")
def customer(client: TestClient) -> dict:
    """Registered customer: the auth response body."""
    return _register(client, "alice@example.com", "CUSTOMER", "Alice Customer")


@pytest.fixture(scope="function")
def support(client: TestClient) -> dict:
    """Registered support agent: the auth response body."""
    return _register(client, "bob@example.com", "SUPPORT", "Bob Support")


@pytest.fixture(scope="function")
def headers_for() -> Callable[[dict], dict[str, str]]:
    return bearer


@pytest.fixture(scope="function")
def customer_headers(customer: dict) -> dict[str, str]:
    return bearer(customer)


@pytest.fixture(scope="function")
def support_headers(support: dict) -> dict[str, str]:
    return bearer(support)
