"""Persistence layer for the MedInfo Service."""

from app.db.base import Base
from app.db.session import close_db, get_db, get_engine, get_session_factory, init_db

__all__ = [
    "Base",
    "close_db",
    "get_db",
    "get_engine",
    "get_session_factory",
    "init_db",
]
