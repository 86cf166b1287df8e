from __future__ import annotations
import os

# Keep the app's module-level engine off Postgres during tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime, timedelta, timezone
from uuid import UUID
import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select as sa_select
from sqlalchemy.exc import OperationalError

from haddaf.db import Base, get_session, get_sessionmaker, make_engine, make_sessionmaker
from haddaf.deps import get_user_directory
from haddaf.main import app
from haddaf.models.challenge import Challenge
from haddaf.models.submission import Submission
from haddaf.models.user import User
import haddaf.models.rating  # noqa: F401  register table
from haddaf.security import make_access_token
from haddaf.services.storage import get_media_store
from haddaf.services.users import UserDirectory


class FakeMediaStore:
    """In-memory stand-in for the S3 bucket."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        self.objects[key] = (data, content_type)

    def get_bytes(self, key: str) -> tuple[bytes, str]:
        if key not in self.objects:
            raise FileNotFoundError(f"Object not found: {key}")
        return self.objects[key]

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)


def now() -> datetime:
    return datetime.now(timezone.utc)


def auth(uid: str, role: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(uid, role=role)}"}


@pytest_asyncio.fixture
async def sessionmaker(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'haddaf.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield make_sessionmaker(engine)
    await engine.dispose()


@pytest.fixture
def media() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def users(sessionmaker) -> UserDirectory:
    return UserDirectory(sessionmaker)


class LockedLedger:
    """Makes the ledger's submission reads fail as if SQLite stayed locked."""

    def __init__(self):
        self.attempts = 0

    def select(self, *entities, **kw):
        if entities and entities[0] is Submission:
            self.attempts += 1
            raise OperationalError("SELECT submissions", {}, Exception("database is locked"))
        return sa_select(*entities, **kw)


@pytest.fixture
def locked_ledger(monkeypatch) -> LockedLedger:
    locked = LockedLedger()
    monkeypatch.setattr("haddaf.services.ratings.select", locked.select)
    return locked


@pytest_asyncio.fixture
async def client(sessionmaker, media, users):
    async def _session():
        async with sessionmaker() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_sessionmaker] = lambda: sessionmaker
    app.dependency_overrides[get_media_store] = lambda: media
    app.dependency_overrides[get_user_directory] = lambda: users
    try:
        async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


async def add_challenge(sessionmaker, *, title: str = "Weak foot finishing", ends_in: timedelta = timedelta(days=7), **kw) -> UUID:
    async with sessionmaker() as s:
        ch = Challenge(
            title=title,
            description=kw.pop("description", "Score with your weaker foot"),
            criteria=kw.pop("criteria", ["Accuracy", "Power"]),
            start_at=kw.pop("start_at", now() - timedelta(days=1)),
            end_at=now() + ends_in,
            **kw,
        )
        s.add(ch)
        await s.commit()
        return ch.id


async def add_submission(sessionmaker, challenge_id: UUID, uid: str, *, created_at: datetime | None = None, stars: int = 0, count: int = 0) -> UUID:
    async with sessionmaker() as s:
        sub = Submission(
            challenge_id=challenge_id,
            uid=uid,
            video_url="/v.mp4",
            storage_path=f"challenges/{challenge_id}/submissions/{uid}/seed.mp4",
            duration_sec=10.0,
            total_stars=stars,
            total_points=stars * 5,
            rating_count=count,
        )
        if created_at is not None:
            sub.created_at = created_at
        s.add(sub)
        await s.commit()
        return sub.id


async def add_user(sessionmaker, uid: str, first: str = "", last: str = "", pic: str = "", role: str = "player") -> None:
    async with sessionmaker() as s:
        s.add(User(id=uid, first_name=first, last_name=last, profile_pic=pic, role=role))
        await s.commit()


async def get_submission(sessionmaker, submission_id: UUID) -> Submission:
    async with sessionmaker() as s:
        return await s.get(Submission, submission_id)
