"""
Prepared-statement boundary between ff-record and the storage engine.

This is the only surface the query builder and the transaction wrapper
call. Driver adapters in :mod:`ff_record.db.adapters` implement it for
asyncpg and aiomysql; tests implement it with in-memory recorders.
"""

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

Row = Mapping[str, Any]


@runtime_checkable
class PreparedStatement(Protocol):
    """A compiled statement with `?` placeholders."""

    def bind(self, *values: Any) -> "PreparedStatement":
        """Bind positional values, in placeholder order."""
        ...

    async def first(self) -> Optional[Row]:
        """Execute and return the first row, or None."""
        ...

    async def all(self) -> Sequence[Row]:
        """Execute and return every row."""
        ...

    async def run(self) -> Any:
        """Execute for effect (INSERT/UPDATE/DELETE/BEGIN/COMMIT/ROLLBACK)."""
        ...


@runtime_checkable
class Database(Protocol):
    """A handle to one store session."""

    def prepare(self, query: str) -> PreparedStatement: ...
