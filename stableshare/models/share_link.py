import enum
import secrets
from datetime import datetime
from typing import Optional
from sqlalchemy import JSON, String, Integer, DateTime, ForeignKey, Enum as SAEnum, func
from sqlalchemy.orm import Mapped, mapped_column
from stableshare.core.database import Base, as_utc, utcnow
from stableshare.models.organization import generate_id


class LinkType(str, enum.Enum):
    standard = "standard"
    one_time = "one_time"
    password_protected = "password_protected"


class SharedField(str, enum.Enum):
    basic_info = "basic_info"
    description = "description"
    pedigree = "pedigree"
    health = "health"
    training = "training"
    competitions = "competitions"
    images = "images"
    videos = "videos"
    price = "price"
    xrays = "xrays"


SHARED_FIELD_VALUES = frozenset(f.value for f in SharedField)


def generate_token() -> str:
    """32 random bytes, hex-encoded (64 chars)"""
    return secrets.token_hex(32)


class ShareLink(Base):
    __tablename__ = "share_links"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    horse_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("horses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True, default=generate_token
    )
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    link_type: Mapped[LinkType] = mapped_column(
        SAEnum(LinkType), nullable=False, default=LinkType.standard
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_views: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    shared_fields: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= as_utc(self.expires_at)

    def is_exhausted(self) -> bool:
        if self.link_type != LinkType.one_time or self.max_views is None:
            return False
        return self.view_count >= self.max_views

    def requires_password(self) -> bool:
        return self.link_type == LinkType.password_protected

    def status(self, now: Optional[datetime] = None) -> str:
        if self.is_expired(now):
            return "expired"
        if self.is_exhausted():
            return "exhausted"
        return "active"

    def to_owner_dict(self) -> dict:
        """Link as shown to organization members; never includes the hash."""
        return {
            "id": self.id,
            "horse_id": self.horse_id,
            "organization_id": self.organization_id,
            "token": self.token,
            "recipient_name": self.recipient_name,
            "link_type": self.link_type.value,
            "expires_at": as_utc(self.expires_at).isoformat(),
            "created_at": as_utc(self.created_at).isoformat() if self.created_at else None,
            "created_by": self.created_by,
            "view_count": self.view_count,
            "max_views": self.max_views,
            "shared_fields": list(self.shared_fields or []),
            "status": self.status(),
        }


class ShareLinkView(Base):
    """Append-only view ledger"""
    __tablename__ = "share_link_views"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    share_link_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("share_links.id", ondelete="CASCADE"), nullable=False, index=True
    )
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    referer: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
