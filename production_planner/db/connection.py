# production_planner/db/connection.py
from typing import Dict, Any, Literal
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from supabase import create_client, Client

from production_planner.config import config
from production_planner.exceptions import DatabaseError, StorageUnavailableError
from production_planner.models import Base

DatabaseType = Literal["sqlalchemy", "supabase"]

class DatabaseConfig:
    """Configuration for database connections."""

    @staticmethod
    def get_db_type() -> DatabaseType:
        """Get database type from configuration."""
        return config.db_type

    @staticmethod
    def get_engine_options(connection_string: str) -> Dict[str, Any]:
        """Get engine keyword arguments; pool settings only apply to server databases."""
        options = {'echo': config.get_boolean('DATABASE', 'echo', default=False)}
        if not connection_string.startswith('sqlite'):
            options.update({
                'pool_size': config.get_int('DATABASE', 'pool_size', default=5),
                'max_overflow': config.get_int('DATABASE', 'max_overflow', default=10),
                'pool_timeout': config.get_int('DATABASE', 'pool_timeout', default=30),
                'pool_recycle': config.get_int('DATABASE', 'pool_recycle', default=1800),
                'pool_pre_ping': True
            })
        return options

def enable_sqlite_foreign_keys(engine: Engine) -> Engine:
    """Make SQLite enforce foreign keys on every connection it opens.

    SQLite ignores REFERENCES clauses unless the pragma is set per
    connection; other dialects are left alone.
    """
    if engine.dialect.name == 'sqlite':
        @event.listens_for(engine, 'connect')
        def _set_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()
    return engine

class DatabaseConnection:
    """Unified database connection handler for SQLAlchemy engines and Supabase."""

    _instance = None

    def __new__(cls):
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._engine = None
            cls._instance._SessionLocal = None
            cls._instance._supabase = None
            cls._instance._db_type = None
        return cls._instance

    def initialize(self, connection_string: str = None, db_type: DatabaseType = None):
        """Open the configured backend.

        Args:
            connection_string: Optional SQLAlchemy URL overriding configuration
            db_type: Optional backend type overriding configuration
        """
        db_type = db_type or ('sqlalchemy' if connection_string else DatabaseConfig.get_db_type())

        if db_type == "supabase":
            self._initialize_supabase()
        elif db_type == "sqlalchemy":
            self._initialize_sqlalchemy(connection_string or config.get_db_url())
        else:
            raise DatabaseError(f"Unknown database type: {db_type}")

        self._db_type = db_type

    def _initialize_sqlalchemy(self, connection_string: str):
        """Initialize the SQLAlchemy engine and session factory."""
        try:
            self._engine = enable_sqlite_foreign_keys(create_engine(
                connection_string,
                **DatabaseConfig.get_engine_options(connection_string)
            ))

            self._SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self._engine
            )

            # Test connection
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))

        except Exception as e:
            raise StorageUnavailableError(f"Failed to initialize database connection: {str(e)}")

    def _initialize_supabase(self):
        """Initialize Supabase connection."""
        supabase_config = config.supabase_config

        if not supabase_config['url'] or not supabase_config['key']:
            raise DatabaseError("Supabase URL and key must be provided")

        try:
            self._supabase = create_client(
                supabase_config['url'],
                supabase_config['key']
            )
        except Exception as e:
            raise StorageUnavailableError(f"Failed to initialize Supabase connection: {str(e)}")

    def _ensure_initialized(self):
        if self._db_type is None:
            self.initialize()

    @contextmanager
    def session_scope(self) -> Session:
        """Provide transaction scope for database operations."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Session:
        """Get a database session (SQLAlchemy only)."""
        self._ensure_initialized()
        if self._db_type != "sqlalchemy":
            raise DatabaseError("Sessions are only available for SQLAlchemy connections")

        return self._SessionLocal()

    def get_supabase(self) -> Client:
        """Get Supabase client (Supabase only)."""
        self._ensure_initialized()
        if self._db_type != "supabase":
            raise DatabaseError("get_supabase is only available for Supabase connections")

        return self._supabase

    @property
    def engine(self):
        """Get SQLAlchemy engine (SQLAlchemy only)."""
        self._ensure_initialized()
        if self._db_type != "sqlalchemy":
            raise DatabaseError("engine is only available for SQLAlchemy connections")

        return self._engine

    @property
    def db_type(self) -> DatabaseType:
        """Get current database type."""
        self._ensure_initialized()
        return self._db_type

    def create_all_tables(self):
        """Create all tables defined in the models."""
        Base.metadata.create_all(bind=self.engine)

    def drop_all_tables(self):
        """Drop all tables defined in the models."""
        Base.metadata.drop_all(bind=self.engine)

# Singleton instance; connects on first use
db = DatabaseConnection()

@contextmanager
def session_scope():
    """Context manager for database sessions."""
    with db.session_scope() as session:
        yield session

def get_engine():
    """Get SQLAlchemy engine."""
    return db.engine

def get_session():
    """Get database session."""
    return db.get_session()
