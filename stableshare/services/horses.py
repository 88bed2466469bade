"""
Read side of the horse record store.

Every query is filtered by organization_id as well as the record id, so a
share link can only ever surface records of the organization that issued it.
"""
import logging
from datetime import date
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from stableshare.core.database import utcnow
from stableshare.models.horse import Competition, Horse, HorseImage, HorseVideo, HorseXRay
from stableshare.models.organization import Organization, OrganizationContact

logger = logging.getLogger(__name__)

# (output key, column) in generation order: parents, grandparents, great-grandparents
_PEDIGREE_COLUMNS = (
    ("sire", "pedigree_sire"),
    ("dam", "pedigree_dam"),
    ("sire_sire", "pedigree_sire_sire"),
    ("sire_dam", "pedigree_sire_dam"),
    ("dam_sire", "pedigree_dam_sire"),
    ("dam_dam", "pedigree_dam_dam"),
    ("sire_sire_sire", "pedigree_sire_sire_sire"),
    ("sire_sire_dam", "pedigree_sire_sire_dam"),
    ("sire_dam_sire", "pedigree_sire_dam_sire"),
    ("sire_dam_dam", "pedigree_sire_dam_dam"),
    ("dam_sire_sire", "pedigree_dam_sire_sire"),
    ("dam_sire_dam", "pedigree_dam_sire_dam"),
    ("dam_dam_sire", "pedigree_dam_dam_sire"),
    ("dam_dam_dam", "pedigree_dam_dam_dam"),
)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def calculate_age(birth_year: Optional[int]) -> Optional[int]:
    if birth_year is None:
        return None
    return max(utcnow().year - birth_year, 0)


def _pedigree(horse: Horse) -> Optional[dict]:
    if not (horse.pedigree_sire or horse.pedigree_dam):
        return None
    pedigree = {}
    for key, column in _PEDIGREE_COLUMNS:
        value = getattr(horse, column)
        if value or key in ("sire", "dam"):
            pedigree[key] = value or ""
    return pedigree


async def _children(db: AsyncSession, model, horse_id: str, *order_by):
    result = await db.execute(
        select(model).where(model.horse_id == horse_id).order_by(*order_by)
    )
    return result.scalars().all()


async def get_horse_record(
    db: AsyncSession,
    horse_id: str,
    organization_id: str,
) -> Optional[dict]:
    """
    Full record for one horse, grouped by share category.
    Returns None when the horse does not exist in that organization.
    """
    result = await db.execute(
        select(Horse).where(
            Horse.id == horse_id,
            Horse.organization_id == organization_id,
        )
    )
    horse = result.scalars().first()
    if horse is None:
        return None

    images = await _children(db, HorseImage, horse.id, HorseImage.is_primary.desc(), HorseImage.id)
    videos = await _children(db, HorseVideo, horse.id, HorseVideo.id)
    competitions = await _children(db, Competition, horse.id, Competition.date.desc(), Competition.id)
    xrays = await _children(db, HorseXRay, horse.id, HorseXRay.date_taken.desc(), HorseXRay.id)

    return {
        "id": horse.id,
        "name": horse.name,
        "breed": horse.breed,
        "age": calculate_age(horse.birth_year),
        "color": horse.color,
        "gender": horse.gender,
        "height": horse.height,
        "description": horse.description,
        "price": horse.price,
        "pedigree": _pedigree(horse),
        "health": {
            "vaccinations": horse.health_vaccinations,
            "coggins": horse.health_coggins,
            "last_vet_check": _iso(horse.health_last_vet_check),
        },
        "training": {
            "level": horse.training_level,
            "disciplines": list(horse.training_disciplines or []),
        },
        "competitions": [
            {
                "id": c.id,
                "event": c.event,
                "date": _iso(c.date),
                "discipline": c.discipline,
                "placement": c.placement,
                "notes": c.notes,
                "equipe_link": c.equipe_link,
            }
            for c in competitions
        ],
        "images": [
            {"id": i.id, "url": i.url, "caption": i.caption, "is_primary": i.is_primary}
            for i in images
        ],
        "videos": [
            {"id": v.id, "url": v.url, "caption": v.caption, "thumbnail": v.thumbnail}
            for v in videos
        ],
        "xrays": [
            {
                "id": x.id,
                "file_url": x.file_url,
                "file_type": x.file_type.value,
                "format": x.format,
                "date_taken": _iso(x.date_taken),
                "body_part": x.body_part,
                "veterinarian_name": x.veterinarian_name,
                "notes": x.notes,
            }
            for x in xrays
        ],
    }


async def horse_in_organization(db: AsyncSession, horse_id: str, organization_id: str) -> bool:
    result = await db.execute(
        select(Horse.id).where(
            Horse.id == horse_id,
            Horse.organization_id == organization_id,
        )
    )
    return result.first() is not None


async def get_organization_profile(db: AsyncSession, organization_id: str) -> dict:
    """Organization details and contacts, always shown to share viewers."""
    organization = await db.get(Organization, organization_id)
    result = await db.execute(
        select(OrganizationContact)
        .where(OrganizationContact.organization_id == organization_id)
        .order_by(OrganizationContact.is_primary.desc(), OrganizationContact.name)
    )
    contacts = result.scalars().all()
    if organization is None:
        logger.warning(f"Organization {organization_id} missing while building share view")
    return {
        "organization": organization.to_public_dict() if organization else None,
        "contacts": [c.to_public_dict() for c in contacts],
    }
