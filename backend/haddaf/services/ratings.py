from __future__ import annotations
from typing import NamedTuple
from uuid import UUID
import structlog
from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haddaf.config import settings
from haddaf.models.rating import Rating
from haddaf.models.submission import Submission, POINTS_PER_STAR
from haddaf.services.store import run_in_transaction

log = structlog.get_logger()

MIN_STARS = 1
MAX_STARS = 5


class RatingError(Exception):
    pass

class InvalidInputError(RatingError, ValueError):
    pass

class UnauthenticatedError(RatingError):
    pass

class AlreadyRatedError(RatingError):
    def __init__(self, msg: str = "You already evaluated this player."):
        super().__init__(msg)

class SubmissionNotFoundError(RatingError, LookupError):
    pass


class RatingTotals(NamedTuple):
    total_stars: int
    rating_count: int

    @property
    def total_points(self) -> int:
        return self.total_stars * POINTS_PER_STAR


def validate_stars(stars) -> int:
    # bool is an int subclass; True must not count as one star
    if isinstance(stars, bool) or not isinstance(stars, int):
        raise InvalidInputError(f"stars must be an integer, got {stars!r}")
    if not MIN_STARS <= stars <= MAX_STARS:
        raise InvalidInputError(f"stars must be between {MIN_STARS} and {MAX_STARS}, got {stars}")
    return stars


def _require_rater(rater_id: str | None) -> str:
    rid = (rater_id or "").strip()
    if not rid:
        raise UnauthenticatedError("Sign in to rate submissions")
    return rid


async def submit_rating(
    sessionmaker: async_sessionmaker[AsyncSession],
    submission_id: UUID,
    rater_id: str | None,
    stars: int,
    *,
    max_attempts: int | None = None,
    base_delay: float | None = None,
) -> RatingTotals:
    """
    Apply one rating, at most once per (submission, rater).

    Runs as a single transaction: lock the submission row, refuse if the rater
    already has a rating, then write the rating and the new aggregates together.
    Returns the updated (total_stars, rating_count).
    """
    stars = validate_stars(stars)
    rid = _require_rater(rater_id)

    async def _apply(session: AsyncSession) -> RatingTotals:
        sub = await session.scalar(
            select(Submission).where(Submission.id == submission_id).with_for_update()
        )
        if sub is None:
            raise SubmissionNotFoundError(f"Submission {submission_id} not found")

        existing = await session.get(Rating, (submission_id, rid))
        if existing is not None:
            raise AlreadyRatedError()

        updated_stars = int(sub.total_stars or 0) + stars
        updated_count = int(sub.rating_count or 0) + 1

        session.add(Rating(submission_id=submission_id, rater_id=rid, stars=stars))
        sub.total_stars = updated_stars
        sub.rating_count = updated_count
        sub.total_points = updated_stars * POINTS_PER_STAR
        try:
            await session.flush()
        except IntegrityError as e:
            # Lost a race against the same rater on a store without row locks
            raise AlreadyRatedError() from e
        return RatingTotals(updated_stars, updated_count)

    try:
        totals = await run_in_transaction(
            sessionmaker,
            _apply,
            max_attempts=settings.rating_max_attempts if max_attempts is None else max_attempts,
            base_delay=settings.rating_retry_base_delay if base_delay is None else base_delay,
            op="submit_rating",
        )
    except AlreadyRatedError:
        log.info("rating_rejected", submission_id=str(submission_id), rater_id=rid, reason="already_rated")
        raise

    log.info(
        "rating_applied",
        submission_id=str(submission_id),
        rater_id=rid,
        stars=stars,
        total_stars=totals.total_stars,
        rating_count=totals.rating_count,
        total_points=totals.total_points,
    )
    return totals


async def has_rated(session: AsyncSession, submission_id: UUID, rater_id: str | None) -> bool:
    """UI hint only. Never use this to authorize a rating."""
    rid = (rater_id or "").strip()
    if not rid:
        return False
    found = await session.scalar(
        select(exists().where(Rating.submission_id == submission_id, Rating.rater_id == rid))
    )
    return bool(found)


async def rated_submission_ids(session: AsyncSession, submission_ids: list[UUID], rater_id: str | None) -> set[UUID]:
    rid = (rater_id or "").strip()
    if not rid or not submission_ids:
        return set()
    rows = await session.scalars(
        select(Rating.submission_id).where(Rating.rater_id == rid, Rating.submission_id.in_(submission_ids))
    )
    return set(rows.all())
