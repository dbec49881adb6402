"""
Database module - SQLAlchemy engine, sessions and schema migrations.
"""
from app.db.database import get_db_session, execute_raw_sql, test_db_connection
from app.db.migrations import run_migrations

__all__ = [
    "get_db_session",
    "execute_raw_sql",
    "test_db_connection",
    "run_migrations"
]
