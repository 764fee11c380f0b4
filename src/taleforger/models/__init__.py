"""Database models for TaleForger.

SQLAlchemy models for users and their stories. All models use async
SQLAlchemy (asyncpg for PostgreSQL, aiosqlite for local SQLite).
"""

from .database import Base, close_db, create_tables, get_engine, get_session, init_db
from .story import Story
from .user import User

__all__ = [
    # Database
    "Base",
    "init_db",
    "get_session",
    "get_engine",
    "create_tables",
    "close_db",
    # Models
    "User",
    "Story",
]
