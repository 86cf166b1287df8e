from __future__ import annotations
import uuid
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from fastapi.responses import Response
from minio.error import S3Error
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from haddaf.db import get_session
from haddaf.auth_deps import Identity, get_current_identity, get_optional_identity
from haddaf.config import settings
from haddaf.deps import get_user_directory
from haddaf.models.rating import Rating
from haddaf.models.submission import Submission
from haddaf.routes.challenges import get_challenge_or_404
from haddaf.schemas.submission import BoardPublic, LeaderboardRow, SubmissionPublic
from haddaf.services.board import board_public, load_board, submission_public
from haddaf.services.clock import as_utc, is_past
from haddaf.services.ratings import rated_submission_ids
from haddaf.services.storage import MediaStore, VIDEO_MIME, get_media_store, submission_storage_path
from haddaf.services.users import UserDirectory

router = APIRouter(prefix="/challenges", tags=["submissions"])
log = structlog.get_logger()

def _video_url(challenge_id: UUID, submission_id: UUID) -> str:
    # Served through the API so storage keys never leave the backend
    return f"/challenges/{challenge_id}/submissions/{submission_id}/video"

async def get_submission_or_404(session: AsyncSession, challenge_id: UUID, submission_id: UUID) -> Submission:
    s = await session.scalar(
        select(Submission).where(Submission.id == submission_id, Submission.challenge_id == challenge_id)
    )
    if not s:
        raise HTTPException(status_code=404, detail="Submission not found")
    return s

@router.get("/{challenge_id}/submissions", response_model=BoardPublic)
async def challenge_board(
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
    viewer: Identity | None = Depends(get_optional_identity),
    users: UserDirectory = Depends(get_user_directory),
):
    await get_challenge_or_404(session, challenge_id)
    snap = await load_board(session, challenge_id)
    rated = await rated_submission_ids(session, [s.id for s in snap.submissions], viewer.uid if viewer else None)
    # Profiles load on their own connection
    await session.close()
    authors = await users.fetch_many(s.uid for s in snap.submissions)
    return board_public(snap, authors, rated)

@router.get("/{challenge_id}/leaderboard", response_model=list[LeaderboardRow])
async def leaderboard(
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
    users: UserDirectory = Depends(get_user_directory),
):
    await get_challenge_or_404(session, challenge_id)
    snap = await load_board(session, challenge_id)
    await session.close()
    authors = await users.fetch_many(s.uid for s in snap.top)
    rows = []
    for rank, s in enumerate(snap.top, start=1):
        a = authors.get(s.uid)
        rows.append(LeaderboardRow(
            rank=rank,
            submission_id=s.id,
            uid=s.uid,
            full_name=a.full_name if a else "Player",
            photo_url=a.photo_url if a else "",
            total_points=int(s.total_points or 0),
            rating_count=int(s.rating_count or 0),
            created_at=as_utc(s.created_at),
        ))
    return rows

@router.post("/{challenge_id}/submissions", response_model=SubmissionPublic, status_code=201)
async def upload_submission(
    challenge_id: UUID,
    video: UploadFile = File(..., description="Clip to enter, mp4"),
    duration_sec: float = Form(..., description="Clip length measured on the device"),
    session: AsyncSession = Depends(get_session),
    ident: Identity = Depends(get_current_identity),
    media: MediaStore = Depends(get_media_store),
):
    ch = await get_challenge_or_404(session, challenge_id)
    if is_past(ch.end_at):
        raise HTTPException(status_code=400, detail="Challenge has ended")
    if duration_sec <= 0:
        raise HTTPException(status_code=422, detail="duration_sec must be positive")
    if duration_sec > settings.max_video_seconds:
        raise HTTPException(status_code=422, detail=f"Video must be {settings.max_video_seconds:g} seconds or shorter")
    if video.content_type and not video.content_type.startswith("video/"):
        raise HTTPException(status_code=415, detail="Only video uploads are accepted")

    data = await video.read()
    if not data:
        raise HTTPException(status_code=422, detail="Empty video file")

    sub_id = uuid.uuid4()
    storage_path = submission_storage_path(ch.id, ident.uid)
    media.put_bytes(storage_path, data, VIDEO_MIME)

    s = Submission(
        id=sub_id,
        challenge_id=ch.id,
        uid=ident.uid,
        video_url=_video_url(ch.id, sub_id),
        storage_path=storage_path,
        duration_sec=float(duration_sec),
        total_stars=0,
        total_points=0,
        rating_count=0,
    )
    session.add(s)
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        # Remove the blob we just wrote
        try:
            media.delete(storage_path)
        except S3Error:
            log.warning("orphan_video_cleanup_failed", storage_path=storage_path)
        raise
    await session.refresh(s)
    log.info("submission_created", submission_id=str(s.id), challenge_id=str(ch.id), uid=ident.uid, bytes=len(data))
    return submission_public(s)

@router.get("/{challenge_id}/submissions/{submission_id}/video")
async def get_submission_video(
    challenge_id: UUID,
    submission_id: UUID,
    session: AsyncSession = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
):
    s = await get_submission_or_404(session, challenge_id, submission_id)
    if not s.storage_path:
        raise HTTPException(status_code=404, detail="No video associated with this submission")
    try:
        data, content_type = media.get_bytes(s.storage_path)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Video file not found in storage")
    return Response(content=data, media_type=content_type)

@router.delete("/{challenge_id}/submissions/{submission_id}", status_code=204)
async def delete_submission(
    challenge_id: UUID,
    submission_id: UUID,
    session: AsyncSession = Depends(get_session),
    ident: Identity = Depends(get_current_identity),
    media: MediaStore = Depends(get_media_store),
):
    s = await get_submission_or_404(session, challenge_id, submission_id)
    if s.uid != ident.uid:
        raise HTTPException(status_code=403, detail="Only the owner can delete this submission")

    if s.storage_path:
        try:
            media.delete(s.storage_path)
        except S3Error as e:
            log.error("video_delete_failed", submission_id=str(s.id), code=e.code)
            raise HTTPException(status_code=502, detail="Could not delete video from storage")

    await session.execute(delete(Rating).where(Rating.submission_id == s.id))
    await session.delete(s)
    await session.commit()
    log.info("submission_deleted", submission_id=str(submission_id), uid=ident.uid)
    return Response(status_code=204)
