"""
Table-bound model with a chainable query API.

Filters, ordering and pagination accumulate on the instance and are
flushed by the next executing call:

    users = TableModel.for_record(User, db)
    adults = await users.where("age > ?", 18).order_by("name").limit(10).all()

Every executing call (first, all, find, create, update, delete) clears the
pending state when it finishes, whether it succeeded or raised. One
instance must be driven by one caller at a time; do not share it across
concurrent tasks.
"""

import logging
from typing import Any, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from .db.query_builder import PendingQuery, QueryBuilder
from .db.statement import Database
from .exceptions import EmptyPayloadError, QueryError, UsageError
from .schema import Payload, Record, derive_payload_models, payload_is_empty, payload_to_dict

T = TypeVar("T")


class TableModel(Generic[T]):
    """
    Data access for a single table.

    Subclasses usually pin the table and types as class attributes:

        class Users(TableModel[User]):
            table_name = "users"
            row_model = User

    When ``row_model`` is set and the payload types are not, they are
    derived from it. Without a ``row_model`` rows are returned as dicts.
    """

    table_name: Optional[str] = None
    row_model: Optional[Type[BaseModel]] = None
    create_model: Optional[Type[BaseModel]] = None
    update_model: Optional[Type[BaseModel]] = None

    def __init__(
        self,
        db: Database,
        table_name: Optional[str] = None,
        *,
        row_model: Optional[Type[BaseModel]] = None,
        create_model: Optional[Type[BaseModel]] = None,
        update_model: Optional[Type[BaseModel]] = None,
        query_builder: Optional[QueryBuilder] = None,
        logger=None,
    ):
        """
        Initialize model.

        Args:
            db: Store handle implementing prepare()
            table_name: Table name (overrides the class attribute)
            row_model: Row type; dicts are returned when None
            create_model: Payload type validated by create()
            update_model: Payload type validated by update()
            query_builder: SQL builder (default: QueryBuilder())
            logger: Optional logger instance

        Raises:
            UsageError: If no table name is given or it is not a plain identifier
        """
        self.db = db
        self.query_builder = query_builder or QueryBuilder()
        self.logger = logger or logging.getLogger(__name__)

        table_name = table_name or type(self).table_name
        if not table_name:
            raise UsageError(f"{type(self).__name__} has no table_name")
        self.table_name = self.query_builder.validate_identifier(table_name)

        self.row_model = row_model or type(self).row_model
        self.create_model = create_model or type(self).create_model
        self.update_model = update_model or type(self).update_model

        if self.row_model is not None and issubclass(self.row_model, Record):
            derived_create, derived_update = derive_payload_models(self.row_model)
            self.create_model = self.create_model or derived_create
            self.update_model = self.update_model or derived_update

        self._pending = PendingQuery()

    @classmethod
    def for_record(cls, record_cls: Type[Record], db: Database, **kwargs) -> "TableModel":
        """Build a model bound to record_cls's table with derived payload types."""
        return cls(db, record_cls.table_name(), row_model=record_cls, **kwargs)

    # ==================== Chaining ====================

    def where(self, condition: str, *params: Any) -> "TableModel[T]":
        """
        Add a condition, ANDed with any previous ones.

        ``condition`` is trusted SQL predicate text written by the
        application, e.g. ``"age > ?"``. It is not escaped. Never build it
        from user input; pass user values through ``params`` instead.

        Args:
            condition: Predicate with one ``?`` per param
            *params: Values bound to the placeholders in order

        Returns:
            Self for chaining
        """
        self._pending.conditions.append((condition, tuple(params)))
        return self

    def order_by(self, clause: str) -> "TableModel[T]":
        """Set the ORDER BY clause (trusted text). Replaces any previous one."""
        self._pending.order_by = clause
        return self

    def limit(self, n: int) -> "TableModel[T]":
        """Set the row cap. Replaces any previous one."""
        self._pending.limit = self._check_count("limit", n)
        return self

    def offset(self, n: int) -> "TableModel[T]":
        """Set rows to skip. Ignored unless a limit is also set."""
        self._pending.offset = self._check_count("offset", n)
        return self

    @property
    def pending(self) -> PendingQuery:
        """Copy of the pending query state."""
        return self._pending.copy()

    def to_sql(self, force_limit: Optional[int] = None) -> Tuple[str, List[Any]]:
        """Compile the pending SELECT without running it or clearing state."""
        return self.query_builder.build_select(self.table_name, self._pending, force_limit)

    # ==================== Reads ====================

    async def first(self) -> Optional[T]:
        """
        Return the first matching row, or None.

        Always compiles LIMIT 1; any chained limit and offset are ignored.
        """
        try:
            query, params = self.query_builder.build_select(
                self.table_name, self._pending, force_limit=1
            )
            row = await self._execute("first", "first", query, params)
        finally:
            self._reset()
        return self._to_row(row)

    async def all(self) -> List[T]:
        """Return every matching row (possibly an empty list)."""
        try:
            query, params = self.query_builder.build_select(self.table_name, self._pending)
            rows = await self._execute("all", "all", query, params)
        finally:
            self._reset()
        return [self._to_row(row) for row in rows or []]

    async def find(self, primary_key: Any) -> Optional[T]:
        """
        Return the row with this primary key, or None.

        Pending filters are discarded, not combined with the lookup.
        """
        try:
            query, params = self.query_builder.build_find(self.table_name, primary_key)
            row = await self._execute("find", "first", query, params)
        finally:
            self._reset()
        return self._to_row(row)

    # ==================== Writes ====================

    async def create(self, payload: Payload) -> T:
        """
        Insert a row and return it as reported by the store.

        Args:
            payload: Create model instance or mapping of column values

        Returns:
            The new row, including its assigned primary key

        Raises:
            EmptyPayloadError: If payload has no fields (no store call is made)
            PayloadValidationError: If a mapping payload is invalid
            QueryError: If the store reports no row for the insert
        """
        try:
            # Checked before defaults are filled in
            if payload_is_empty(payload):
                raise EmptyPayloadError("create", self.table_name)
            data = payload_to_dict(payload, self.create_model)
            query, params = self.query_builder.build_insert(self.table_name, data)
            row = await self._execute("create", "first", query, params)
        finally:
            self._reset()

        if row is None:
            raise QueryError(f"Insert into {self.table_name} returned no row")
        return self._to_row(row)

    async def update(self, primary_key: Any, payload: Payload) -> None:
        """
        Update the given fields of one row. Fields not in payload are untouched.

        Raises:
            EmptyPayloadError: If payload has no fields (no store call is made)
            PayloadValidationError: If a mapping payload is invalid
        """
        try:
            if payload_is_empty(payload):
                raise EmptyPayloadError("update", self.table_name)
            data = payload_to_dict(payload, self.update_model, partial=True)
            query, params = self.query_builder.build_update(self.table_name, primary_key, data)
            await self._execute("update", "run", query, params)
        finally:
            self._reset()

    async def delete(self, primary_key: Any) -> None:
        """Delete one row by primary key."""
        try:
            query, params = self.query_builder.build_delete(self.table_name, primary_key)
            await self._execute("delete", "run", query, params)
        finally:
            self._reset()

    # ==================== Helper Methods ====================

    async def _execute(self, operation: str, method: str, query: str, params: List[Any]):
        """Prepare, bind and run one statement, logging store failures."""
        self.logger.debug(
            "Executing %s on %s: %s (%d params)", operation, self.table_name, query, len(params)
        )
        try:
            statement = self.db.prepare(query)
            if params:
                statement = statement.bind(*params)
            return await getattr(statement, method)()
        except Exception as e:
            self.logger.error(
                f"Failed to {operation} {self.table_name}",
                extra={"query": query, "error": str(e)},
                exc_info=True,
            )
            raise

    def _reset(self) -> None:
        self._pending = PendingQuery()

    def _to_row(self, row: Optional[Mapping[str, Any]]) -> Optional[T]:
        if row is None:
            return None
        if self.row_model is None:
            return dict(row)
        return self.row_model.model_validate(dict(row))

    @staticmethod
    def _check_count(name: str, n: int) -> int:
        # Written into the SQL text, so it must be a real non-negative int
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise UsageError(f"{name} must be a non-negative integer, got {n!r}")
        return n

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table_name={self.table_name!r})"
