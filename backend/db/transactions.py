"""Transaction boundary helpers.

Storage conflicts are translated into TransientStorageError inside the
ledger; the whole transaction is retried here, never a partial step.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import TransientStorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
_RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}
# unique_violation: a concurrent writer inserted the same key first
_UNIQUE_VIOLATION = "23505"
_RETRY_BACKOFF_SECONDS = 0.05


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_unique_race(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(getattr(exc, "orig", exc))


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, IntegrityError):
        # Check and foreign-key violations are permanent.
        return _is_unique_race(exc)
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError):
        return exc.connection_invalidated or _sqlstate(exc) in _RETRYABLE_SQLSTATES
    return False


@asynccontextmanager
async def storage_guard(action: str):
    try:
        yield
    except DBAPIError as e:
        if not is_transient(e):
            raise
        raise TransientStorageError(f"{action} hit a storage conflict, please retry") from e


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    *,
    retries: Optional[int] = None,
) -> T:
    """Run `work` and commit; on a storage conflict roll back and rerun it whole."""
    retries = settings.transaction_retries if retries is None else retries
    attempt = 0
    while True:
        try:
            result = await work()
            async with storage_guard("commit"):
                await db.commit()
            return result
        except TransientStorageError as e:
            await db.rollback()
            attempt += 1
            if attempt > retries:
                raise
            logger.warning("Transient storage error (attempt %d/%d): %s", attempt, retries, e.message)
            await asyncio.sleep(_RETRY_BACKOFF_SECONDS * attempt)
        except Exception:
            await db.rollback()
            raise
