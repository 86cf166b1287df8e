from __future__ import annotations
import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from haddaf.models.user import User
from haddaf.services.store import TransientStoreError, is_retryable, run_in_transaction


class _PgError(Exception):
    def __init__(self, sqlstate: str):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def _locked() -> OperationalError:
    return OperationalError("UPDATE submissions", {}, Exception("database is locked"))


def test_retryable_classification():
    assert is_retryable(_locked())
    assert is_retryable(DBAPIError("SELECT 1", {}, _PgError("40001")))
    assert is_retryable(DBAPIError("SELECT 1", {}, _PgError("40P01")))
    assert is_retryable(ConnectionResetError())
    assert not is_retryable(IntegrityError("INSERT", {}, _PgError("23505")))
    assert not is_retryable(DBAPIError("SELECT 1", {}, _PgError("42601")))
    assert not is_retryable(ValueError("nope"))


@pytest.mark.asyncio
async def test_retries_then_commits(sessionmaker):
    calls = []

    async def work(session):
        calls.append(1)
        session.add(User(id=f"u{len(calls)}", first_name="Sara"))
        await session.flush()
        if len(calls) < 3:
            raise _locked()
        return "done"

    assert await run_in_transaction(sessionmaker, work, max_attempts=5, base_delay=0) == "done"
    assert len(calls) == 3

    async with sessionmaker() as s:
        ids = (await s.execute(select(User.id))).scalars().all()
    # Failed attempts were rolled back
    assert ids == ["u3"]


@pytest.mark.asyncio
async def test_exhaustion_raises_transient_error(sessionmaker):
    calls = []

    async def work(session):
        calls.append(1)
        raise _locked()

    with pytest.raises(TransientStoreError) as exc:
        await run_in_transaction(sessionmaker, work, max_attempts=3, base_delay=0)
    assert len(calls) == 3
    assert isinstance(exc.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_domain_errors_abort_without_retry(sessionmaker):
    calls = []

    class Refused(Exception):
        pass

    async def work(session):
        calls.append(1)
        session.add(User(id="ghost"))
        await session.flush()
        raise Refused()

    with pytest.raises(Refused):
        await run_in_transaction(sessionmaker, work, max_attempts=5, base_delay=0)
    assert len(calls) == 1

    async with sessionmaker() as s:
        assert await s.scalar(select(func.count()).select_from(User)) == 0


@pytest.mark.asyncio
async def test_rejects_zero_attempts(sessionmaker):
    async def work(session):
        return None

    with pytest.raises(ValueError):
        await run_in_transaction(sessionmaker, work, max_attempts=0)
