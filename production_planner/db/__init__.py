# production_planner/db/__init__.py
from .connection import DatabaseConnection, db, session_scope, get_engine, get_session
from .interface import DatabaseInterface, SQLAlchemyInterface, SupabaseInterface, get_interface

from production_planner.exceptions import DatabaseError

def initialize(connection_string=None):
    """Initialize database connection and create tables if needed."""
    db.initialize(connection_string)
    if db.db_type == "sqlalchemy":
        db.create_all_tables()
    # Supabase tables are created by running the SQL in migrations/

def get_db_type() -> str:
    """Get current database type."""
    return db.db_type

def create_all_tables():
    """Create all tables (SQLAlchemy only)."""
    if db.db_type != "sqlalchemy":
        raise DatabaseError("create_all_tables is only available for SQLAlchemy connections")
    db.create_all_tables()

def drop_all_tables():
    """Drop all tables (SQLAlchemy only)."""
    if db.db_type != "sqlalchemy":
        raise DatabaseError("drop_all_tables is only available for SQLAlchemy connections")
    db.drop_all_tables()

__all__ = [
    'db',
    'initialize',
    'session_scope',
    'get_engine',
    'get_session',
    'get_db_type',
    'get_interface',
    'create_all_tables',
    'drop_all_tables',
    'DatabaseConnection',
    'DatabaseInterface',
    'SQLAlchemyInterface',
    'SupabaseInterface'
]
