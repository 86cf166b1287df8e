from __future__ import annotations
import asyncio
from typing import Awaitable, Callable, TypeVar
import structlog
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

log = structlog.get_logger()

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}


class TransientStoreError(Exception):
    """Store unreachable or conflicts persisted past the retry budget. Safe to retry later."""


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    # OperationalError covers sqlite "database is locked" and dropped connections
    if exc.connection_invalidated or isinstance(exc, OperationalError):
        return True
    return _sqlstate(exc) in RETRYABLE_SQLSTATES


async def run_in_transaction(
    sessionmaker: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    max_attempts: int = 5,
    base_delay: float = 0.05,
    op: str = "transaction",
) -> T:
    """
    Run `work` inside a single atomic transaction, retrying on conflicts.

    Every attempt gets a fresh session so no state leaks between retries.
    Exceptions raised by `work` itself (domain errors, integrity errors) abort
    the transaction and propagate untouched; nothing is committed.
    After `max_attempts` retryable failures, raises TransientStoreError.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    last_exc: BaseException | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            async with sessionmaker() as session:
                async with session.begin():
                    return await work(session)
        except Exception as e:
            if not is_retryable(e):
                raise
            last_exc = e
            log.warning("txn_conflict_retry", op=op, attempt=attempt, max_attempts=max_attempts, error=str(e))
            if attempt < max_attempts:
                await asyncio.sleep(base_delay * (2 ** (attempt - 1)))

    log.error("txn_retries_exhausted", op=op, attempts=max_attempts)
    raise TransientStoreError(f"{op} failed after {max_attempts} attempts") from last_exc
