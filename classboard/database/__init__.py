"""
Database connection and utilities package.
"""
from .base import (
    Base,
    get_engine,
    get_session_factory,
    check_database_connection,
    init_database,
    close_database,
)

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "check_database_connection",
    "init_database",
    "close_database",
]
