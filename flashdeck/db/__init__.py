"""
Database layer: SQLAlchemy models, engine/session management and the SQL
implementation of the repository protocols.
"""

from flashdeck.db.database import Database, create_db_engine, get_database
from flashdeck.db.models import (
    Base,
    CardRecord,
    DeckScoreRecord,
    MemoryStateRecord,
    ReviewRecord,
    SessionRecord,
)
from flashdeck.db.store import SqlStore

__all__ = [
    # Engine
    "Database",
    "create_db_engine",
    "get_database",
    # Models
    "Base",
    "CardRecord",
    "MemoryStateRecord",
    "ReviewRecord",
    "SessionRecord",
    "DeckScoreRecord",
    # Store
    "SqlStore",
]
