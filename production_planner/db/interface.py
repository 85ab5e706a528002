# production_planner/db/interface.py
import enum
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, Any, Optional, List, Tuple, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from production_planner.config import config
from production_planner.models import Base
from production_planner.exceptions import (
    DatabaseError, ConstraintViolationError, StorageUnavailableError
)

# Column -> (lower bound, upper bound), both inclusive; either may be None
Ranges = Dict[str, Tuple[Any, Any]]

# Postgres SQLSTATE class 23 (integrity constraint violation: unique, foreign
# key, check, not null): the write itself was rejected and retrying cannot help
INTEGRITY_CONSTRAINT_CLASS = '23'

class DatabaseInterface(ABC):
    """Abstract database interface for different database types.

    Rows cross this boundary as plain dictionaries. Enumerations are passed
    and returned by value ('Lunch'), dates as ``datetime.date``.
    """

    @abstractmethod
    def query(
        self,
        table_name: str,
        filters: Dict[str, Any] = None,
        ranges: Ranges = None,
        order_by: str = None,
        descending: bool = False,
        limit: int = None
    ) -> List[Dict[str, Any]]:
        """Query data from a table."""
        pass

    @abstractmethod
    def insert(self, table_name: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert rows into a table and return them as stored."""
        pass

    @abstractmethod
    def update(self, table_name: str, data: Dict[str, Any], filters: Dict[str, Any]) -> int:
        """Update data in a table."""
        pass

    @abstractmethod
    def delete(self, table_name: str, filters: Dict[str, Any]) -> int:
        """Delete data from a table."""
        pass

    @abstractmethod
    def replace_rows(
        self,
        table_name: str,
        scope: Dict[str, Any],
        rows: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Atomically replace every row matching ``scope`` with ``rows``.

        Either the old rows are gone and all new rows are stored, or nothing
        changed.
        """
        pass


def _plain(value):
    if isinstance(value, enum.Enum):
        return value.value
    return value


class SQLAlchemyInterface(DatabaseInterface):
    """SQLAlchemy interface implementation working inside one session.

    Writes are flushed, not committed: the owner of the session (usually
    ``session_scope``) commits, so everything done through one interface is
    a single transaction.
    """

    def __init__(self, session: Session):
        """Initialize with a SQLAlchemy session."""
        self.session = session
        self._models = {
            mapper.class_.__tablename__: mapper.class_
            for mapper in Base.registry.mappers
        }

    def _model(self, table_name: str) -> Type[Base]:
        try:
            return self._models[table_name]
        except KeyError:
            raise DatabaseError(f"Unknown table: {table_name}")

    def _filtered(self, model, filters: Dict[str, Any] = None, ranges: Ranges = None):
        query = self.session.query(model)

        for key, value in (filters or {}).items():
            column = getattr(model, key)
            if isinstance(value, (list, tuple, set)):
                query = query.filter(column.in_([_plain(v) for v in value]))
            elif value is None:
                query = query.filter(column.is_(None))
            else:
                query = query.filter(column == _plain(value))

        for key, (low, high) in (ranges or {}).items():
            column = getattr(model, key)
            if low is not None:
                query = query.filter(column >= low)
            if high is not None:
                query = query.filter(column <= high)

        return query

    def _fail(self, operation: str, table_name: str, error: Exception):
        self.session.rollback()
        if isinstance(error, IntegrityError):
            raise ConstraintViolationError(
                f"{operation} on {table_name} rejected: {error.orig}",
                details={'table': table_name}
            )
        raise StorageUnavailableError(
            f"{operation} on {table_name} failed: {str(error)}",
            details={'table': table_name}
        )

    def query(self, table_name, filters=None, ranges=None, order_by=None, descending=False, limit=None):
        """Query data from a table using the session."""
        model = self._model(table_name)
        try:
            query = self._filtered(model, filters, ranges)
            if order_by:
                column = getattr(model, order_by)
                query = query.order_by(column.desc() if descending else column.asc())
            if limit:
                query = query.limit(limit)
            return [self._model_to_dict(instance) for instance in query.all()]
        except SQLAlchemyError as e:
            self._fail('Query', table_name, e)

    def insert(self, table_name, rows):
        """Insert rows using the session."""
        model = self._model(table_name)
        instances = [self._dict_to_model(model, row) for row in rows]
        try:
            self.session.add_all(instances)
            self.session.flush()
            return [self._model_to_dict(instance) for instance in instances]
        except SQLAlchemyError as e:
            self._fail('Insert', table_name, e)

    def update(self, table_name, data, filters):
        """Update rows using the session."""
        model = self._model(table_name)
        try:
            instances = self._filtered(model, filters).all()
            for instance in instances:
                for key, value in data.items():
                    setattr(instance, key, value)
            self.session.flush()
            return len(instances)
        except SQLAlchemyError as e:
            self._fail('Update', table_name, e)

    def delete(self, table_name, filters):
        """Delete rows using the session."""
        model = self._model(table_name)
        try:
            count = self._filtered(model, filters).delete(synchronize_session=False)
            self.session.flush()
            return count
        except SQLAlchemyError as e:
            self._fail('Delete', table_name, e)

    def replace_rows(self, table_name, scope, rows):
        """Delete and insert inside the session's transaction.

        A failure rolls the session back, which restores the deleted rows.
        """
        model = self._model(table_name)
        instances = [self._dict_to_model(model, {**row, **scope}) for row in rows]
        try:
            self._filtered(model, scope).delete(synchronize_session=False)
            self.session.add_all(instances)
            self.session.flush()
            return [self._model_to_dict(instance) for instance in instances]
        except SQLAlchemyError as e:
            self._fail('Replace', table_name, e)

    def _model_to_dict(self, instance: Base) -> Dict[str, Any]:
        """Convert model instance to dictionary."""
        result = {}
        for column in instance.__table__.columns:
            result[column.name] = _plain(getattr(instance, column.name))
        return result

    def _dict_to_model(self, model_class: Type[Base], data: Dict[str, Any]) -> Base:
        """Convert dictionary to model instance."""
        instance = model_class()
        for column in instance.__table__.columns:
            if column.name in data:
                setattr(instance, column.name, data[column.name])
        return instance


class SupabaseInterface(DatabaseInterface):
    """Supabase interface implementation."""

    # Server-side functions performing the scoped replace in one transaction,
    # see migrations/002_replace_production_plans.sql
    REPLACE_FUNCTIONS = {
        'production_plans': 'replace_production_plans',
    }

    DATE_COLUMNS = {'sale_date', 'waste_date', 'plan_date'}

    def __init__(self, client, page_size: Optional[int] = None):
        """Initialize with Supabase client.

        Args:
            client: Supabase client
            page_size: Rows per select request; defaults to configuration
        """
        self.client = client
        self.page_size = page_size or config.supabase_page_size

    def _execute(self, operation: str, table_name: str, request):
        try:
            result = request.execute()
        except Exception as e:
            code = getattr(e, 'code', None)
            if isinstance(code, str) and code.startswith(INTEGRITY_CONSTRAINT_CLASS):
                raise ConstraintViolationError(
                    f"{operation} on {table_name} rejected: {str(e)}",
                    code=code,
                    details={'table': table_name}
                )
            raise StorageUnavailableError(
                f"Supabase {operation.lower()} on {table_name} failed: {str(e)}",
                details={'table': table_name}
            )

        if hasattr(result, 'error') and result.error:
            raise StorageUnavailableError(f"Supabase {operation.lower()} error: {result.error}")

        return result.data if result.data else []

    def _serialize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        serialized = {}
        for key, value in data.items():
            value = _plain(value)
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            serialized[key] = value
        return serialized

    def _deserialize(self, row: Dict[str, Any]) -> Dict[str, Any]:
        for key in self.DATE_COLUMNS:
            if isinstance(row.get(key), str):
                row[key] = date.fromisoformat(row[key][:10])
        return row

    def _apply_filters(self, request, filters: Dict[str, Any] = None, ranges: Ranges = None):
        for key, value in self._serialize(filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                request = request.in_(key, [_plain(v) for v in value])
            elif value is None:
                request = request.is_(key, 'null')
            else:
                request = request.eq(key, value)

        for key, (low, high) in (ranges or {}).items():
            if low is not None:
                request = request.gte(key, self._serialize({key: low})[key])
            if high is not None:
                request = request.lte(key, self._serialize({key: high})[key])

        return request

    def query(self, table_name, filters=None, ranges=None, order_by=None, descending=False, limit=None):
        """Query data from a table using Supabase.

        Results are fetched a page at a time until a short page comes back,
        so a server-side row cap never truncates the result. Pages are
        ordered by ``id`` after ``order_by`` so offsets are stable.
        """
        def build():
            request = self._apply_filters(self.client.table(table_name).select('*'), filters, ranges)
            if order_by:
                request = request.order(order_by, desc=descending)
            if order_by != 'id':
                request = request.order('id')
            return request

        rows = []
        offset = 0
        while True:
            page_size = self.page_size
            if limit:
                page_size = min(page_size, limit - len(rows))
            page = self._execute('Query', table_name, build().range(offset, offset + page_size - 1))
            rows.extend(page)
            if len(page) < page_size or (limit and len(rows) >= limit):
                break
            offset += page_size

        return [self._deserialize(row) for row in rows]

    def insert(self, table_name, rows):
        """Insert rows into a table using Supabase."""
        if not rows:
            return []
        payload = [self._serialize(row) for row in rows]
        request = self.client.table(table_name).insert(payload)
        return [self._deserialize(row) for row in self._execute('Insert', table_name, request)]

    def update(self, table_name, data, filters):
        """Update data in a table using Supabase."""
        request = self._apply_filters(
            self.client.table(table_name).update(self._serialize(data)), filters
        )
        return len(self._execute('Update', table_name, request))

    def delete(self, table_name, filters):
        """Delete data from a table using Supabase."""
        request = self._apply_filters(self.client.table(table_name).delete(), filters)
        return len(self._execute('Delete', table_name, request))

    def replace_rows(self, table_name, scope, rows):
        """Replace rows through a server-side function (one transaction)."""
        function_name = self.REPLACE_FUNCTIONS.get(table_name)
        if function_name is None:
            raise DatabaseError(f"No atomic replace function registered for {table_name}")

        request = self.client.rpc(function_name, {
            'p_scope': self._serialize(scope),
            'p_rows': [self._serialize({**row, **scope}) for row in rows],
        })
        return [self._deserialize(row) for row in self._execute('Replace', table_name, request)]


def get_interface(session: Optional[Session] = None, connection=None) -> DatabaseInterface:
    """Get the database interface for the configured backend.

    Args:
        session: SQLAlchemy session to work in (SQLAlchemy backend)
        connection: DatabaseConnection; defaults to the global one

    Returns:
        DatabaseInterface implementation
    """
    if session is not None:
        return SQLAlchemyInterface(session)

    if connection is None:
        from production_planner.db.connection import db as connection

    if connection.db_type == "supabase":
        return SupabaseInterface(connection.get_supabase())

    raise DatabaseError("A session is required for the SQLAlchemy backend; use session_scope()")
