from __future__ import annotations
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime


class AuthorPublic(BaseModel):
    id: str
    full_name: str
    photo_url: str = ""


class SubmissionPublic(BaseModel):
    id: UUID
    challenge_id: UUID
    uid: str
    video_url: str
    # 🔒 do not expose storage paths
    created_at: datetime
    duration_sec: float
    total_stars: int
    total_points: int
    rating_count: int
    author: AuthorPublic | None = None
    pinned_rank: int | None = None   # 1..3 when in the top list
    rated_by_me: bool = False


class BoardPublic(BaseModel):
    challenge_id: UUID
    top3: list[SubmissionPublic] = Field(default_factory=list)
    # top3 first, then everything else newest first
    submissions: list[SubmissionPublic] = Field(default_factory=list)


class LeaderboardRow(BaseModel):
    rank: int
    submission_id: UUID
    uid: str
    full_name: str
    photo_url: str = ""
    total_points: int
    rating_count: int
    created_at: datetime
