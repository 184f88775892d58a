"""
ff-record: Async table models and transactions over prepared statements.

Features:
- Chainable where/order_by/limit/offset queries that reset after every call
- CRUD with bound parameters and pydantic row/payload types
- Transactions that roll back without masking the original error
- asyncpg and aiomysql connection adapters
- Model and migration generator CLI
"""

# Version is read from package metadata (pyproject.toml is the single source of truth)
try:
    from importlib.metadata import version

    __version__ = version("ff-record")
except Exception:
    __version__ = "0.1.0"

from .db import (
    Database,
    DatabaseAdapter,
    MySQLDatabase,
    PendingQuery,
    PostgresDatabase,
    PreparedStatement,
    QueryBuilder,
    detect_adapter,
)
from .exceptions import (
    ConfigurationError,
    EmptyPayloadError,
    FFRecordError,
    InvalidIdentifierError,
    PayloadValidationError,
    QueryError,
    UsageError,
)
from .model import TableModel
from .schema import Record, derive_payload_models, payload_to_dict
from .transaction import run_in_transaction

__all__ = [
    # Version
    "__version__",
    # Models
    "TableModel",
    "Record",
    "derive_payload_models",
    "payload_to_dict",
    # Transactions
    "run_in_transaction",
    # Store boundary
    "Database",
    "PreparedStatement",
    "PendingQuery",
    "QueryBuilder",
    # Adapters
    "DatabaseAdapter",
    "PostgresDatabase",
    "MySQLDatabase",
    "detect_adapter",
    # Exceptions
    "FFRecordError",
    "UsageError",
    "EmptyPayloadError",
    "InvalidIdentifierError",
    "PayloadValidationError",
    "QueryError",
    "ConfigurationError",
]
