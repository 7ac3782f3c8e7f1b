"""Password hashing and verification using Argon2id."""

import re

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from issue_tracker.config import Settings, get_settings

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

_SPECIAL_CHARS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def get_password_hasher(settings: Settings | None = None) -> PasswordHasher:
    """Get configured Argon2id password hasher.

    Cost parameters come from settings so tests can run with a cheap hash.
    """
    settings = settings or get_settings()
    return PasswordHasher(
        time_cost=settings.password_time_cost,
        memory_cost=settings.password_memory_cost,
        parallelism=1,
        hash_len=32,
        salt_len=16,
        encoding="utf-8",
    )


def hash_password(password: str, settings: Settings | None = None) -> str:
    """Hash password using Argon2id.

    Args:
        password: Plain text password

    Returns:
        Argon2id hash string (salt and parameters embedded)
    """
    return get_password_hasher(settings).hash(password)


def verify_password(password: str, hash_string: str, settings: Settings | None = None) -> bool:
    """Verify password against Argon2id hash.

    Returns:
        True if password matches hash, False otherwise (including malformed hashes)
    """
    try:
        return get_password_hasher(settings).verify(hash_string, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def needs_rehash(hash_string: str, settings: Settings | None = None) -> bool:
    """Check if a stored hash was produced with outdated cost parameters."""
    try:
        return get_password_hasher(settings).check_needs_rehash(hash_string)
    except InvalidHashError:
        return True


def check_password_strength(password: str) -> list[str]:
    """Return the list of strength rules the password violates."""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password) > MAX_PASSWORD_LENGTH:
        errors.append(f"Password must be {MAX_PASSWORD_LENGTH} characters or less")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_CHARS.search(password):
        errors.append("Password must contain at least one special character")
    return errors
