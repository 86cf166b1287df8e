from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haddaf.db import get_session, get_sessionmaker
from haddaf.auth_deps import Identity, get_optional_identity
from haddaf.routes.submissions import get_submission_or_404
from haddaf.schemas.review import RatingCreate, RatingResult, RatingStatus
from haddaf.services.ratings import (
    AlreadyRatedError,
    InvalidInputError,
    SubmissionNotFoundError,
    UnauthenticatedError,
    has_rated,
    submit_rating,
)
from haddaf.services.store import TransientStoreError

router = APIRouter(prefix="/challenges", tags=["ratings"])

@router.post("/{challenge_id}/submissions/{submission_id}/rating", response_model=RatingResult, status_code=201)
async def rate_submission(
    challenge_id: UUID,
    submission_id: UUID,
    payload: RatingCreate,
    session: AsyncSession = Depends(get_session),
    sessionmaker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
    viewer: Identity | None = Depends(get_optional_identity),
):
    # Scope check only; the ledger runs in its own transaction
    await get_submission_or_404(session, challenge_id, submission_id)
    await session.close()

    try:
        totals = await submit_rating(sessionmaker, submission_id, viewer.uid if viewer else None, payload.stars)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UnauthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AlreadyRatedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SubmissionNotFoundError:
        raise HTTPException(status_code=404, detail="Submission not found")
    except TransientStoreError:
        raise HTTPException(status_code=503, detail="Rating could not be saved right now, try again")

    return RatingResult(
        submission_id=submission_id,
        total_stars=totals.total_stars,
        rating_count=totals.rating_count,
        total_points=totals.total_points,
    )

@router.get("/{challenge_id}/submissions/{submission_id}/rating", response_model=RatingStatus)
async def rating_status(
    challenge_id: UUID,
    submission_id: UUID,
    session: AsyncSession = Depends(get_session),
    viewer: Identity | None = Depends(get_optional_identity),
):
    await get_submission_or_404(session, challenge_id, submission_id)
    rated = await has_rated(session, submission_id, viewer.uid if viewer else None)
    return RatingStatus(submission_id=submission_id, rated=rated)
