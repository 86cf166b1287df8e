from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import List, Literal
from uuid import UUID
from datetime import datetime

StatusText = Literal["New", "Past"]

class ChallengeCreate(BaseModel):
    title: str = Field(min_length=3, max_length=120)
    description: str = ""
    criteria: List[str] = Field(default_factory=list, description="Evaluation criteria, in display order")
    image_url: str = ""
    start_at: datetime
    end_at: datetime

    @field_validator("criteria")
    @classmethod
    def strip_criteria(cls, v: list[str]):
        cleaned = [c.strip() for c in v]
        if any(not c for c in cleaned):
            raise ValueError("criteria labels must not be blank")
        return cleaned

class ChallengePublic(BaseModel):
    id: UUID
    title: str
    description: str
    criteria: List[str]
    image_url: str
    start_at: datetime
    end_at: datetime
    created_at: datetime
    # Derived from end_at vs. now, never stored
    is_past: bool
    status_text: StatusText
