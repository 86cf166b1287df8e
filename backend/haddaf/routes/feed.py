from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haddaf.db import get_session, get_sessionmaker
from haddaf.config import settings
from haddaf.deps import get_user_directory
from haddaf.routes.challenges import get_challenge_or_404
from haddaf.services.board import board_public, submission_snapshots
from haddaf.services.users import UserDirectory

router = APIRouter(prefix="/challenges", tags=["feed"])

@router.get("/{challenge_id}/submissions/stream")
async def stream_board(
    challenge_id: UUID,
    limit: int | None = Query(default=None, ge=1, le=1000, description="Stop after this many snapshots"),
    session: AsyncSession = Depends(get_session),
    sessionmaker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
    users: UserDirectory = Depends(get_user_directory),
):
    """
    Newline-delimited JSON, one full board per line. A line is sent on
    connect and then whenever points, ratings or the submission set change.
    """
    await get_challenge_or_404(session, challenge_id)
    await session.close()

    async def _lines():
        async for snap in submission_snapshots(
            sessionmaker, challenge_id, interval=settings.feed_poll_seconds, max_snapshots=limit
        ):
            authors = await users.fetch_many(s.uid for s in snap.submissions)
            yield board_public(snap, authors).model_dump_json() + "\n"

    return StreamingResponse(_lines(), media_type="application/x-ndjson")
