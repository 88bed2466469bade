import enum
from datetime import date, datetime
from typing import Optional
from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column
from stableshare.core.database import Base
from stableshare.models.organization import generate_id


class XRayFileType(str, enum.Enum):
    upload = "upload"   # object-store path in the private bucket
    url = "url"         # externally hosted


class Horse(Base):
    __tablename__ = "horses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    breed: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    birth_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    color: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    gender: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    height: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    weight: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="Available")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    pedigree_sire: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_dam: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_sire_sire: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_sire_dam: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_dam_sire: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_dam_dam: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_sire_sire_sire: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_sire_sire_dam: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_sire_dam_sire: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_sire_dam_dam: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_dam_sire_sire: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_dam_sire_dam: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_dam_dam_sire: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pedigree_dam_dam_dam: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    health_vaccinations: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    health_coggins: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    health_last_vet_check: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    training_level: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    training_disciplines: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    date_added: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class HorseImage(Base):
    __tablename__ = "horse_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    horse_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("horses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class HorseVideo(Base):
    __tablename__ = "horse_videos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    horse_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("horses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    thumbnail: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)


class Competition(Base):
    __tablename__ = "competitions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    horse_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("horses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    discipline: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    placement: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    equipe_link: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)


class HorseXRay(Base):
    __tablename__ = "horse_xrays"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    horse_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("horses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_type: Mapped[XRayFileType] = mapped_column(
        SAEnum(XRayFileType), nullable=False, default=XRayFileType.upload
    )
    format: Mapped[str] = mapped_column(String(16), nullable=False, default="dicom")
    date_taken: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    body_part: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    veterinarian_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
