from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from haddaf.db import get_session
from haddaf.auth_deps import Identity, get_current_identity
from haddaf.models.challenge import Challenge
from haddaf.schemas.challenge import ChallengeCreate, ChallengePublic
from haddaf.services.clock import as_utc, is_past, utcnow

router = APIRouter(prefix="/challenges", tags=["challenges"])
log = structlog.get_logger()

def to_public(ch: Challenge, now=None) -> ChallengePublic:
    past = is_past(ch.end_at, now)
    return ChallengePublic(
        id=ch.id, title=ch.title, description=ch.description or "",
        criteria=list(ch.criteria or []), image_url=ch.image_url or "",
        start_at=as_utc(ch.start_at), end_at=as_utc(ch.end_at), created_at=as_utc(ch.created_at),
        is_past=past, status_text="Past" if past else "New",
    )

async def get_challenge_or_404(session: AsyncSession, challenge_id: UUID) -> Challenge:
    ch = await session.get(Challenge, challenge_id)
    if not ch:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return ch

@router.get("", response_model=list[ChallengePublic])
async def list_challenges(
    session: AsyncSession = Depends(get_session),
):
    rows = (await session.execute(
        select(Challenge).order_by(Challenge.created_at.desc(), Challenge.id.desc())
    )).scalars().all()
    now = utcnow()
    return [to_public(c, now) for c in rows]

@router.post("", response_model=ChallengePublic, status_code=201)
async def create_challenge(
    payload: ChallengeCreate,
    session: AsyncSession = Depends(get_session),
    ident: Identity = Depends(get_current_identity),
):
    if not ident.can_publish:
        raise HTTPException(status_code=403, detail="Only coaches and admins can publish challenges")
    if as_utc(payload.end_at) <= as_utc(payload.start_at):
        raise HTTPException(status_code=422, detail="end_at must be after start_at")
    ch = Challenge(
        title=payload.title,
        description=payload.description,
        criteria=payload.criteria,
        image_url=payload.image_url,
        start_at=payload.start_at,
        end_at=payload.end_at,
        created_by=ident.uid,
    )
    session.add(ch)
    await session.commit()
    await session.refresh(ch)
    log.info("challenge_created", challenge_id=str(ch.id), created_by=ident.uid)
    return to_public(ch)

@router.get("/{challenge_id}", response_model=ChallengePublic)
async def get_challenge(
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
):
    return to_public(await get_challenge_or_404(session, challenge_id))
