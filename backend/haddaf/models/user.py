from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, func
from haddaf.db import Base
from haddaf.services.clock import utcnow

class User(Base):
    """Read-only profile mirror; ids are identity provider uids."""
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    profile_pic: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="player")  # player|coach|admin
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
