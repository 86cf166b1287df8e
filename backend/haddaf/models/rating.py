from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, DateTime, ForeignKey, CheckConstraint, Uuid, func
from haddaf.db import Base
from haddaf.services.clock import utcnow

class Rating(Base):
    __tablename__ = "ratings"
    # Composite key: one rating per rater per submission, ever
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("submissions.id", ondelete="CASCADE"), primary_key=True
    )
    rater_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    stars: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("stars BETWEEN 1 AND 5", name="ck_rating_stars_range"),
    )
