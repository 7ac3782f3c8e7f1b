"""Tests for the error taxonomy, result unwrapping and integrity translation."""

import pytest
from sqlalchemy.exc import IntegrityError

from issue_tracker.config import DEFAULT_JWT_SECRET, validate_runtime_config
from issue_tracker.db.integrity import classify_integrity_error
from issue_tracker.errors import (
    ApiError,
    ErrorKind,
    Ok,
    conflict,
    error_body,
    not_found,
    unauthorized,
    unwrap,
)


def _integrity_error(message: str, sqlstate: str | None = None) -> IntegrityError:
    orig = Exception(message)
    if sqlstate:
        orig.sqlstate = sqlstate
    return IntegrityError("INSERT ...", {}, orig)


@pytest.mark.unit
class TestErrorKinds:
    """Status mapping and boundary conversion."""

    @pytest.mark.parametrize(
        ("kind", "status"),
        [
            (ErrorKind.VALIDATION, 400),
            (ErrorKind.UNAUTHORIZED, 401),
            (ErrorKind.FORBIDDEN, 403),
            (ErrorKind.NOT_FOUND, 404),
            (ErrorKind.CONFLICT, 409),
            (ErrorKind.INVALID_REFERENCE, 400),
            (ErrorKind.RATE_LIMITED, 429),
            (ErrorKind.INTERNAL, 500),
        ],
    )
    def test_status_codes(self, kind, status):
        assert kind.status_code == status

    def test_unwrap_ok_returns_value(self):
        assert unwrap(Ok(42)) == 42

    def test_unwrap_err_raises_api_error(self):
        with pytest.raises(ApiError) as exc_info:
            unwrap(conflict("User with email a@b.c already exists"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Resource conflict"
        assert exc_info.value.details == "User with email a@b.c already exists"
        assert exc_info.value.headers == {}

    def test_unauthorized_carries_www_authenticate(self):
        with pytest.raises(ApiError) as exc_info:
            unwrap(unauthorized("Invalid email or password"))

        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    def test_error_body_omits_missing_details(self):
        assert error_body("Internal server error") == {"error": "Internal server error"}
        err = not_found("Issue missing").error
        assert error_body(err.message, err.details) == {
            "error": "Resource not found",
            "details": "Issue missing",
        }


@pytest.mark.unit
class TestIntegrityClassification:
    """Constraint violations become Conflict / InvalidReference."""

    def test_postgres_unique_violation(self):
        error = classify_integrity_error(_integrity_error("duplicate key", "23505"))
        assert error.kind is ErrorKind.CONFLICT

    def test_postgres_fk_violation(self):
        error = classify_integrity_error(_integrity_error("violates", "23503"))
        assert error.kind is ErrorKind.INVALID_REFERENCE

    def test_sqlite_messages(self):
        unique = _integrity_error("UNIQUE constraint failed: users.email")
        fk = _integrity_error("FOREIGN KEY constraint failed")

        assert classify_integrity_error(unique).kind is ErrorKind.CONFLICT
        assert classify_integrity_error(fk).kind is ErrorKind.INVALID_REFERENCE

    def test_other_violations_are_internal_without_driver_text(self):
        error = classify_integrity_error(_integrity_error("NOT NULL constraint failed: x"))

        assert error.kind is ErrorKind.INTERNAL
        assert "NOT NULL" not in error.message
        assert error.details is None


@pytest.mark.unit
class TestRuntimeConfig:
    """Startup configuration guard."""

    def test_production_refuses_default_secret(self, test_settings):
        settings = test_settings.model_copy(
            update={"app_env": "production", "jwt_secret": DEFAULT_JWT_SECRET}
        )
        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            validate_runtime_config(settings)

    def test_production_with_real_secret_boots(self, test_settings):
        settings = test_settings.model_copy(update={"app_env": "production"})
        validate_runtime_config(settings)

    def test_development_allows_default_secret(self, test_settings):
        settings = test_settings.model_copy(
            update={"app_env": "development", "jwt_secret": DEFAULT_JWT_SECRET}
        )
        validate_runtime_config(settings)
        assert settings.general_rate_limit == settings.rate_limit_general_dev


@pytest.mark.unit
def test_sqlite_memory_url_left_alone(test_settings):
    assert test_settings.database_url == "sqlite:///:memory:"


@pytest.mark.unit
def test_relative_sqlite_url_made_absolute():
    from issue_tracker.config import Settings

    settings = Settings(_env_file=None, database_url="sqlite:///./data/app.db")
    assert settings.database_url.startswith("sqlite:////")
    assert settings.database_url.endswith("/data/app.db")
