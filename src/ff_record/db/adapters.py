"""
Driver adapters exposing live connections as prepared-statement stores.

Each adapter wraps exactly one connection, so BEGIN/COMMIT/ROLLBACK issued
through it stay on the same session. Acquiring and releasing connections
(e.g. from a pool) is the caller's job:

    async with pool.acquire() as conn:
        db = detect_adapter(conn)
        await run_in_transaction(db, work)

Queries are written with `?` placeholders; adapters translate them to the
driver's parameter style.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..exceptions import ConfigurationError

_RETURNING_PATTERN = re.compile(r"\s+RETURNING\s+\*\s*$", re.IGNORECASE)
_INSERT_TABLE_PATTERN = re.compile(r"^\s*INSERT\s+INTO\s+([A-Za-z0-9_.]+)", re.IGNORECASE)


def convert_placeholders(
    query: str, placeholder: Callable[[int], str], backslash_escapes: bool = False
) -> str:
    """
    Replace `?` placeholders outside quoted literals.

    Args:
        query: SQL with `?` placeholders
        placeholder: Maps the 1-based placeholder position to its replacement
        backslash_escapes: Treat `\\` inside literals as escaping the next
            character (MySQL)

    Returns:
        Converted query
    """
    parts = []
    quote = None
    position = 0
    escaped = False

    for char in query:
        if quote:
            if escaped:
                escaped = False
            elif backslash_escapes and char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            parts.append(char)
        elif char in ("'", '"'):
            quote = char
            parts.append(char)
        elif char == "?":
            position += 1
            parts.append(placeholder(position))
        else:
            parts.append(char)

    return "".join(parts)


class Statement:
    """
    Prepared statement bound to an adapter.

    bind() returns a new statement; the original is left unbound.
    """

    def __init__(self, adapter: "DatabaseAdapter", query: str, params: Tuple[Any, ...] = ()):
        self.adapter = adapter
        self.query = query
        self.params = params

    def bind(self, *values: Any) -> "Statement":
        return Statement(self.adapter, self.query, tuple(values))

    async def first(self) -> Optional[Dict[str, Any]]:
        return await self.adapter.fetch_one(self.query, list(self.params))

    async def all(self) -> List[Dict[str, Any]]:
        return await self.adapter.fetch_all(self.query, list(self.params))

    async def run(self) -> Any:
        return await self.adapter.execute(self.query, list(self.params))

    def __repr__(self) -> str:
        return f"Statement(query={self.query!r}, params={len(self.params)})"


class DatabaseAdapter(ABC):
    """
    Abstract base class for connection adapters.

    Subclasses handle driver-specific behaviour:
    - Parameter style ($1 vs %s)
    - RETURNING support
    - Row conversion to dicts
    """

    def __init__(self, conn):
        """
        Initialize adapter.

        Args:
            conn: Open driver connection (not a pool)
        """
        self.conn = conn

    def prepare(self, query: str) -> Statement:
        """Prepare a `?`-style query for this driver."""
        return Statement(self, self.convert_query(query))

    @abstractmethod
    def get_param_style(self) -> str:
        """
        Return parameter style for this driver.

        Returns:
            'positional': $1, $2 (PostgreSQL)
            'format': %s (MySQL)
        """
        pass

    @abstractmethod
    def convert_query(self, query: str) -> str:
        """Convert `?` placeholders to the driver's style."""
        pass

    @abstractmethod
    async def fetch_one(self, query: str, params: List[Any]) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def fetch_all(self, query: str, params: List[Any]) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def execute(self, query: str, params: List[Any]) -> Any:
        pass


class PostgresDatabase(DatabaseAdapter):
    """Adapter for a PostgreSQL connection using asyncpg."""

    def get_param_style(self) -> str:
        """PostgreSQL uses positional parameters ($1, $2, etc.)."""
        return "positional"

    def convert_query(self, query: str) -> str:
        return convert_placeholders(query, lambda i: f"${i}")

    async def fetch_one(self, query: str, params: List[Any]) -> Optional[Dict[str, Any]]:
        """Native RETURNING support means inserts go through here too."""
        row = await self.conn.fetchrow(query, *params)
        return dict(row) if row else None

    async def fetch_all(self, query: str, params: List[Any]) -> List[Dict[str, Any]]:
        rows = await self.conn.fetch(query, *params)
        return [dict(row) for row in rows]

    async def execute(self, query: str, params: List[Any]) -> str:
        """Returns the command status, e.g. 'UPDATE 1'."""
        return await self.conn.execute(query, *params)


class MySQLDatabase(DatabaseAdapter):
    """
    Adapter for a MySQL connection using aiomysql.

    Open the connection with ``autocommit=True``: statements outside
    run_in_transaction() then commit on their own, and the explicit BEGIN
    issued by run_in_transaction() opens a real transaction.
    """

    def get_param_style(self) -> str:
        """MySQL uses format parameters (%s)."""
        return "format"

    def convert_query(self, query: str) -> str:
        # Params are always passed, so literal % must be escaped
        return convert_placeholders(
            query.replace("%", "%%"), lambda i: "%s", backslash_escapes=True
        )

    async def fetch_one(self, query: str, params: List[Any]) -> Optional[Dict[str, Any]]:
        """
        Fetch one row, emulating RETURNING * for inserts.

        MySQL doesn't support RETURNING clause, so we:
        1. Strip it and execute the INSERT
        2. Read cursor.lastrowid
        3. SELECT the full row back
        """
        async with self.conn.cursor() as cursor:
            if _RETURNING_PATTERN.search(query) and _INSERT_TABLE_PATTERN.match(query):
                table = _INSERT_TABLE_PATTERN.match(query).group(1)
                await cursor.execute(_RETURNING_PATTERN.sub("", query), tuple(params))

                last_id = cursor.lastrowid
                if not last_id:
                    return None
                await cursor.execute(f"SELECT * FROM {table} WHERE id = %s", (last_id,))
            else:
                await cursor.execute(query, tuple(params))

            row = await cursor.fetchone()
            return self._to_dict(cursor, row) if row else None

    async def fetch_all(self, query: str, params: List[Any]) -> List[Dict[str, Any]]:
        async with self.conn.cursor() as cursor:
            await cursor.execute(query, tuple(params))
            rows = await cursor.fetchall()
            return [self._to_dict(cursor, row) for row in rows]

    async def execute(self, query: str, params: List[Any]) -> int:
        """Returns the affected row count."""
        async with self.conn.cursor() as cursor:
            return await cursor.execute(query, tuple(params))

    @staticmethod
    def _to_dict(cursor, row: Sequence[Any]) -> Dict[str, Any]:
        # DictCursor rows are already dicts
        if isinstance(row, dict):
            return row
        columns = [col[0] for col in cursor.description]
        return dict(zip(columns, row))


def detect_adapter(conn) -> DatabaseAdapter:
    """
    Automatically detect driver from connection and return appropriate adapter.

    Args:
        conn: Open driver connection

    Returns:
        Appropriate DatabaseAdapter instance

    Raises:
        ConfigurationError: If the connection type cannot be determined
    """
    conn_module = type(conn).__module__

    if conn_module.startswith("asyncpg"):
        return PostgresDatabase(conn)
    elif conn_module.startswith("aiomysql"):
        return MySQLDatabase(conn)
    else:
        raise ConfigurationError(
            f"Unsupported database connection type: {conn_module}. Supported: asyncpg, aiomysql"
        )
