"""
Store boundary, SQL generation and driver adapters.
"""

from .adapters import DatabaseAdapter, MySQLDatabase, PostgresDatabase, Statement, detect_adapter
from .query_builder import PendingQuery, QueryBuilder
from .statement import Database, PreparedStatement, Row

__all__ = [
    # Store boundary
    "Database",
    "PreparedStatement",
    "Row",
    # SQL generation
    "PendingQuery",
    "QueryBuilder",
    # Adapters
    "DatabaseAdapter",
    "PostgresDatabase",
    "MySQLDatabase",
    "Statement",
    "detect_adapter",
]
