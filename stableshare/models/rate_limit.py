from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from stableshare.core.database import Base
from stableshare.models.organization import generate_id


class RateLimit(Base):
    """
    One row per (action, identifier) attempt window.
    blocked_until is set once attempts reaches the configured maximum.
    """
    __tablename__ = "rate_limits"
    __table_args__ = (UniqueConstraint("action", "identifier"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    identifier: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    window_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    blocked_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
