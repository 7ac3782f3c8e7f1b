"""Database package for ORM models and session management."""

from .base import Base, Database, get_engine, get_session, get_session_factory

__all__ = [
    "Base",
    "Database",
    "get_engine",
    "get_session",
    "get_session_factory",
]
