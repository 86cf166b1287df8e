from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, Float, DateTime, ForeignKey, CheckConstraint, Uuid, func
from haddaf.db import Base
from haddaf.services.clock import utcnow

POINTS_PER_STAR = 5


class Submission(Base):
    """
    One video entry by one user into one challenge.

    Aggregates are written only by the rating ledger:
      - total_stars  = sum of all rating stars
      - rating_count = number of ratings
      - total_points = total_stars * POINTS_PER_STAR
    """
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    challenge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("challenges.id", ondelete="CASCADE"), index=True, nullable=False
    )
    uid: Mapped[str] = mapped_column(
        String(128), index=True, nullable=False
        # NOTE: no FK, profiles are synced from the identity provider and may lag behind
    )

    video_url: Mapped[str] = mapped_column(Text(), nullable=False)
    storage_path: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    duration_sec: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True, nullable=False)

    total_stars: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(f"total_points = total_stars * {POINTS_PER_STAR}", name="ck_submission_points_per_star"),
    )
