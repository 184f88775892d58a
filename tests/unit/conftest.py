"""
Shared fixtures for unit tests.

RecordingDatabase implements the prepared-statement interface in memory and
records every executed statement (including ones configured to fail), so
tests can assert on exact SQL text, bound parameters and call order.
"""

from typing import Any, Dict, List, Optional

import pytest

from ff_record import Record, TableModel


class RecordingStatement:
    def __init__(self, db: "RecordingDatabase", query: str):
        self.db = db
        self.query = query
        self.params: tuple = ()

    def bind(self, *params: Any) -> "RecordingStatement":
        self.params = params
        return self

    async def first(self):
        return self.db.dispatch(self, "first")

    async def all(self):
        return self.db.dispatch(self, "all")

    async def run(self):
        return self.db.dispatch(self, "run")


class RecordingDatabase:
    """
    In-memory store double.

    Args:
        first_row: Row returned by every first() call
        rows: Rows returned by every all() call
        failures: Maps query text to the exception its execution raises
    """

    def __init__(
        self,
        first_row: Optional[Dict[str, Any]] = None,
        rows: Optional[List[Dict[str, Any]]] = None,
        failures: Optional[Dict[str, BaseException]] = None,
    ):
        self.first_row = first_row
        self.rows = rows or []
        self.failures = failures or {}
        self.prepared: List[str] = []
        self.executed: List[Dict[str, Any]] = []

    def prepare(self, query: str) -> RecordingStatement:
        self.prepared.append(query)
        return RecordingStatement(self, query)

    def dispatch(self, statement: RecordingStatement, method: str):
        self.executed.append(
            {"query": statement.query, "params": list(statement.params), "method": method}
        )
        if statement.query in self.failures:
            raise self.failures[statement.query]
        if method == "first":
            return self.first_row
        if method == "all":
            return list(self.rows)
        return {"success": True}

    @property
    def queries(self) -> List[str]:
        return [entry["query"] for entry in self.executed]

    @property
    def last(self) -> Dict[str, Any]:
        return self.executed[-1]


class User(Record):
    """Schema used across model tests."""

    __table_name__ = "users"

    name: str
    email: str
    active: bool = True


@pytest.fixture
def db():
    return RecordingDatabase()


@pytest.fixture
def users(db):
    """Untyped model bound to the users table."""
    return TableModel(db, "users")
