"""
Query builder module for `?`-parameterized SQL generation.
"""

from .base import IDENTIFIER_PATTERN, PendingQuery, QueryBuilder

__all__ = [
    "IDENTIFIER_PATTERN",
    "PendingQuery",
    "QueryBuilder",
]
