from __future__ import annotations
from pydantic import BaseModel
from uuid import UUID

class RatingCreate(BaseModel):
    # Range is enforced by the rating ledger so every caller gets the same error
    stars: int

class RatingResult(BaseModel):
    submission_id: UUID
    total_stars: int
    rating_count: int
    total_points: int

class RatingStatus(BaseModel):
    submission_id: UUID
    rated: bool
