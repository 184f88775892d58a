"""
Query builder for `?`-parameterized SQL.

Identifiers (table and column names) are validated and written into the
query text; every value travels out-of-band in the returned parameter
list, in the same left-to-right order as its placeholder.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from ...exceptions import EmptyPayloadError, InvalidIdentifierError

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


@dataclass
class PendingQuery:
    """
    Filter, ordering and pagination state accumulated by chaining calls.

    Conditions are (predicate_text, params) pairs joined with AND in the
    order they were added. An offset is only emitted when a limit is set.
    """

    conditions: List[Tuple[str, Tuple[Any, ...]]] = field(default_factory=list)
    order_by: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return (
            not self.conditions
            and self.order_by is None
            and self.limit is None
            and self.offset is None
        )

    def copy(self) -> "PendingQuery":
        return PendingQuery(
            conditions=list(self.conditions),
            order_by=self.order_by,
            limit=self.limit,
            offset=self.offset,
        )


class QueryBuilder:
    """Builds SELECT/INSERT/UPDATE/DELETE statements using `?` placeholders."""

    placeholder = "?"

    def __init__(self, key_column: str = "id"):
        self.key_column = self.validate_identifier(key_column)

    def validate_identifier(self, identifier: str) -> str:
        """
        Check that identifier is a plain (optionally schema-qualified) name.

        Args:
            identifier: Table or column name

        Returns:
            The identifier, unchanged

        Raises:
            InvalidIdentifierError: If the name could smuggle SQL into the query
        """
        if not isinstance(identifier, str) or not IDENTIFIER_PATTERN.match(identifier):
            raise InvalidIdentifierError(str(identifier))
        return identifier

    def build_where_clause(
        self, conditions: List[Tuple[str, Tuple[Any, ...]]], operator: str = "AND"
    ) -> Tuple[str, List[Any]]:
        """
        Join trusted predicate fragments into a WHERE body.

        Predicate text is used verbatim. It is never escaped or inspected,
        so it must not contain caller-supplied data; pass values as params.

        Args:
            conditions: List of (predicate_text, params) pairs
            operator: AND or OR

        Returns:
            Tuple of (where_clause, values); ("", []) when there are no conditions
        """
        if not conditions:
            return "", []

        values: List[Any] = []
        for _, params in conditions:
            values.extend(params)

        where_clause = f" {operator} ".join(text for text, _ in conditions)
        return where_clause, values

    def build_select(
        self, table: str, pending: Optional[PendingQuery] = None, force_limit: Optional[int] = None
    ) -> Tuple[str, List[Any]]:
        """
        Build SELECT query from pending state.

        Args:
            table: Table name
            pending: Accumulated filters, ordering and pagination
            force_limit: Replaces the pending limit and suppresses the offset

        Returns:
            Tuple of (query, values)
        """
        pending = pending or PendingQuery()
        query_parts = [f"SELECT * FROM {self.validate_identifier(table)}"]

        where_clause, values = self.build_where_clause(pending.conditions)
        if where_clause:
            query_parts.append(f"WHERE {where_clause}")

        if pending.order_by:
            query_parts.append(f"ORDER BY {pending.order_by}")

        if force_limit is not None:
            query_parts.append(f"LIMIT {int(force_limit)}")
        elif pending.limit is not None:
            query_parts.append(f"LIMIT {int(pending.limit)}")
            if pending.offset is not None:
                query_parts.append(f"OFFSET {int(pending.offset)}")

        return " ".join(query_parts), values

    def build_find(self, table: str, primary_key: Any) -> Tuple[str, List[Any]]:
        """Build primary-key lookup."""
        table = self.validate_identifier(table)
        return f"SELECT * FROM {table} WHERE {self.key_column} = ?", [primary_key]

    def build_insert(
        self, table: str, data: Mapping[str, Any], returning: bool = True
    ) -> Tuple[str, List[Any]]:
        """
        Build INSERT query.

        Columns appear in the mapping's iteration order.

        Args:
            table: Table name
            data: Dict of column -> value
            returning: Append RETURNING * so the store reports the new row

        Returns:
            Tuple of (query, values)

        Raises:
            EmptyPayloadError: If data has no columns
        """
        table = self.validate_identifier(table)
        if not data:
            raise EmptyPayloadError("create", table)

        columns = [self.validate_identifier(col) for col in data.keys()]
        placeholders = ", ".join(self.placeholder for _ in columns)

        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        if returning:
            query += " RETURNING *"

        return query, list(data.values())

    def build_update(
        self, table: str, primary_key: Any, data: Mapping[str, Any]
    ) -> Tuple[str, List[Any]]:
        """
        Build UPDATE query for one row.

        The primary key is bound after every SET value.

        Raises:
            EmptyPayloadError: If data has no columns
        """
        table = self.validate_identifier(table)
        if not data:
            raise EmptyPayloadError("update", table)

        set_parts = [f"{self.validate_identifier(col)} = ?" for col in data.keys()]
        values = [*data.values(), primary_key]

        query = f"UPDATE {table} SET {', '.join(set_parts)} WHERE {self.key_column} = ?"
        return query, values

    def build_delete(self, table: str, primary_key: Any) -> Tuple[str, List[Any]]:
        """Build DELETE query for one row."""
        table = self.validate_identifier(table)
        return f"DELETE FROM {table} WHERE {self.key_column} = ?", [primary_key]

    def get_param_style(self) -> str:
        """Placeholders are question marks."""
        return "qmark"

