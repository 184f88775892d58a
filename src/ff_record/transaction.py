"""
Transaction bracket for a unit of work.

The handle must represent a single store session: BEGIN, the unit of
work and COMMIT/ROLLBACK all run on it. No connection is acquired or
pinned here.
"""

import inspect
import logging
from typing import Awaitable, Callable, TypeVar, Union

from .db.statement import Database

T = TypeVar("T")

UnitOfWork = Callable[[Database], Union[Awaitable[T], T]]

_logger = logging.getLogger(__name__)


async def run_in_transaction(db: Database, unit_of_work: "UnitOfWork[T]", *, logger=None) -> T:
    """
    Run unit_of_work between BEGIN and COMMIT on db.

    Failure priority:
    - BEGIN fails: its error propagates, nothing else runs.
    - unit_of_work fails: ROLLBACK is attempted, the unit of work's error is re-raised.
    - COMMIT fails: ROLLBACK is attempted, the commit error is re-raised.

    A failing ROLLBACK is logged and never replaces the error being reported.

    Args:
        db: Store handle for one session
        unit_of_work: Sync or async callable receiving db
        logger: Optional logger instance

    Returns:
        Whatever unit_of_work returned
    """
    logger = logger or _logger

    await db.prepare("BEGIN").run()
    logger.debug("Transaction started")

    try:
        result = unit_of_work(db)
        if inspect.isawaitable(result):
            result = await result
    except BaseException:
        await _rollback(db, logger, reason="unit of work failed")
        raise

    try:
        await db.prepare("COMMIT").run()
    except BaseException:
        await _rollback(db, logger, reason="commit failed")
        raise

    logger.debug("Transaction committed")
    return result


async def _rollback(db: Database, logger, reason: str) -> None:
    """Attempt ROLLBACK once. Its failure is logged, never raised."""
    try:
        await db.prepare("ROLLBACK").run()
    except Exception as e:
        logger.warning(
            f"Rollback failed after {reason}",
            extra={"error": str(e)},
            exc_info=True,
        )
    else:
        logger.debug(f"Transaction rolled back: {reason}")
