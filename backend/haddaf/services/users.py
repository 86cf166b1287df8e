from __future__ import annotations
import asyncio
from dataclasses import dataclass
from typing import Iterable
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haddaf.models.user import User

log = structlog.get_logger()

DEFAULT_DISPLAY_NAME = "Player"


@dataclass(frozen=True)
class UserMini:
    id: str
    full_name: str
    photo_url: str


def display_name(first: str | None, last: str | None) -> str:
    composed = f"{first or ''} {last or ''}".strip()
    return composed or DEFAULT_DISPLAY_NAME


def to_mini(u: User) -> UserMini:
    return UserMini(id=u.id, full_name=display_name(u.first_name, u.last_name), photo_url=u.profile_pic or "")


class UserDirectory:
    """
    Process-lifetime profile cache. No eviction; restart to clear.

    Concurrent fetches of the same uid share one query. Unknown users are not
    cached so a profile created later is picked up on the next fetch.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker
        self._cache: dict[str, UserMini] = {}
        self._in_flight: dict[str, asyncio.Task] = {}

    def cached(self, uid: str) -> UserMini | None:
        return self._cache.get(uid)

    def __len__(self) -> int:
        return len(self._cache)

    async def _load(self, uid: str) -> UserMini | None:
        async with self._sessionmaker() as session:
            u = await session.get(User, uid)
        if u is None:
            return None
        mini = to_mini(u)
        self._cache[uid] = mini
        return mini

    async def fetch(self, uid: str) -> UserMini | None:
        if uid in self._cache:
            return self._cache[uid]
        task = self._in_flight.get(uid)
        if task is None:
            task = asyncio.ensure_future(self._load(uid))
            self._in_flight[uid] = task
            task.add_done_callback(lambda _t, k=uid: self._in_flight.pop(k, None))
        return await asyncio.shield(task)

    async def fetch_many(self, uids: Iterable[str]) -> dict[str, UserMini]:
        wanted = list(dict.fromkeys(uids))
        missing = [u for u in wanted if u not in self._cache]
        if missing:
            async with self._sessionmaker() as session:
                rows = (await session.execute(select(User).where(User.id.in_(missing)))).scalars().all()
            for u in rows:
                self._cache[u.id] = to_mini(u)
            log.debug("user_directory_filled", requested=len(missing), found=len(rows))
        return {u: self._cache[u] for u in wanted if u in self._cache}
