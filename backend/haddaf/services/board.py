from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haddaf.models.submission import Submission
from haddaf.schemas.submission import AuthorPublic, BoardPublic, SubmissionPublic
from haddaf.services.clock import as_utc
from haddaf.services.ranking import TOP_N, pinned_order, pinned_rank, rank_top
from haddaf.services.users import UserMini

log = structlog.get_logger()


@dataclass(frozen=True)
class BoardSnapshot:
    """A complete view of one challenge's submissions. Never a diff."""
    challenge_id: UUID
    submissions: list[Submission]  # newest first
    top: list[Submission] = field(default_factory=list)

    @property
    def pinned(self) -> list[Submission]:
        return pinned_order(self.top, self.submissions)

    def rank_of(self, submission_id: UUID) -> int | None:
        return pinned_rank(submission_id, self.top)

    def fingerprint(self) -> tuple:
        return tuple((s.id, s.total_points, s.rating_count) for s in self.submissions)


async def list_submissions(session: AsyncSession, challenge_id: UUID) -> list[Submission]:
    rows = await session.execute(
        select(Submission)
        .where(Submission.challenge_id == challenge_id)
        .order_by(Submission.created_at.desc(), Submission.id.desc())
    )
    return list(rows.scalars().all())


async def load_board(session: AsyncSession, challenge_id: UUID, n: int = TOP_N) -> BoardSnapshot:
    subs = await list_submissions(session, challenge_id)
    return BoardSnapshot(challenge_id=challenge_id, submissions=subs, top=rank_top(subs, n))


async def submission_snapshots(
    sessionmaker: async_sessionmaker[AsyncSession],
    challenge_id: UUID,
    *,
    interval: float = 2.0,
    max_snapshots: int | None = None,
) -> AsyncIterator[BoardSnapshot]:
    """
    Yield the board now, then again whenever its content changes.

    Each call starts an independent sequence, so a dropped consumer simply
    calls again. Polls the store every `interval` seconds.
    """
    last: tuple | None = None
    sent = 0
    while True:
        async with sessionmaker() as session:
            snap = await load_board(session, challenge_id)
        fp = snap.fingerprint()
        if fp != last:
            last = fp
            sent += 1
            log.debug("board_snapshot", challenge_id=str(challenge_id), submissions=len(snap.submissions))
            yield snap
            if max_snapshots is not None and sent >= max_snapshots:
                return
        await asyncio.sleep(interval)


def submission_public(
    s: Submission,
    authors: dict[str, UserMini] | None = None,
    rank: int | None = None,
    rated: bool = False,
) -> SubmissionPublic:
    a = (authors or {}).get(s.uid)
    return SubmissionPublic(
        id=s.id,
        challenge_id=s.challenge_id,
        uid=s.uid,
        video_url=s.video_url,
        created_at=as_utc(s.created_at),
        duration_sec=float(s.duration_sec or 0),
        total_stars=int(s.total_stars or 0),
        total_points=int(s.total_points or 0),
        rating_count=int(s.rating_count or 0),
        author=AuthorPublic(id=a.id, full_name=a.full_name, photo_url=a.photo_url) if a else None,
        pinned_rank=rank,
        rated_by_me=rated,
    )


def board_public(
    snap: BoardSnapshot,
    authors: dict[str, UserMini] | None = None,
    rated_ids: set[UUID] | None = None,
) -> BoardPublic:
    rated_ids = rated_ids or set()

    def _one(s: Submission) -> SubmissionPublic:
        return submission_public(s, authors, snap.rank_of(s.id), s.id in rated_ids)

    return BoardPublic(
        challenge_id=snap.challenge_id,
        top3=[_one(s) for s in snap.top],
        submissions=[_one(s) for s in snap.pinned],
    )
