import logging
from datetime import datetime
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError
from starlette.concurrency import run_in_threadpool
from stableshare.core.config import get_settings
from stableshare.core.database import as_utc, utcnow
from stableshare.models.share_link import (
    SHARED_FIELD_VALUES,
    LinkType,
    ShareLink,
    generate_token,
)
from stableshare.services import horses
from stableshare.services.auth import RequestContext
from stableshare.services.passwords import hash_password

logger = logging.getLogger(__name__)
settings = get_settings()


class ShareLinkError(Exception):
    def __init__(self, error_code: str, message: str, status_code: int = 400):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# ─── Validation ──────────────────────────────────────────────────────────────

def _parse_link_type(link_type) -> LinkType:
    try:
        return LinkType(link_type)
    except ValueError:
        raise ShareLinkError("INVALID_LINK_TYPE", f"Unknown link type: {link_type}")


def _normalize_shared_fields(shared_fields: Iterable[str]) -> list[str]:
    fields: list[str] = []
    for field in shared_fields or []:
        value = getattr(field, "value", field)
        if value not in SHARED_FIELD_VALUES:
            raise ShareLinkError("INVALID_SHARED_FIELDS", f"Unknown shared field: {value}")
        if value not in fields:
            fields.append(value)
    if not fields:
        raise ShareLinkError("INVALID_SHARED_FIELDS", "Select at least one field to share")
    return fields


def _resolve_max_views(link_type: LinkType, max_views: Optional[int]) -> Optional[int]:
    if link_type != LinkType.one_time:
        if max_views is not None:
            raise ShareLinkError("INVALID_MAX_VIEWS", "max_views only applies to one-time links")
        return None
    if max_views is None:
        return settings.one_time_default_max_views
    if max_views < 1:
        raise ShareLinkError("INVALID_MAX_VIEWS", "max_views must be at least 1")
    return max_views


# ─── Create ──────────────────────────────────────────────────────────────────

async def create_share_link(
    db: AsyncSession,
    ctx: RequestContext,
    *,
    horse_id: str,
    recipient_name: str,
    link_type: str,
    expires_at: datetime,
    shared_fields: Iterable[str],
    password: Optional[str] = None,
    max_views: Optional[int] = None,
) -> ShareLink:
    """
    Create a share link:
    1. validate type / fields / expiry / password / max_views
    2. check the horse belongs to the caller's organization
    3. hash the password off the event loop
    4. insert with a fresh token (retry on token collision)
    """
    recipient_name = (recipient_name or "").strip()
    if not recipient_name:
        raise ShareLinkError("MISSING_FIELDS", "recipient_name is required")

    kind = _parse_link_type(link_type)
    fields = _normalize_shared_fields(shared_fields)
    final_max_views = _resolve_max_views(kind, max_views)

    expires_at = as_utc(expires_at)
    if expires_at <= utcnow():
        raise ShareLinkError("INVALID_EXPIRY", "expires_at must be in the future")

    if kind == LinkType.password_protected and not password:
        raise ShareLinkError("PASSWORD_MISSING", "Password required for password-protected links")
    if kind != LinkType.password_protected and password:
        raise ShareLinkError("PASSWORD_NOT_ALLOWED", "Only password-protected links take a password")

    if not await horses.horse_in_organization(db, horse_id, ctx.organization_id):
        raise ShareLinkError(
            "HORSE_NOT_FOUND",
            "Horse not found or does not belong to this organization",
            status_code=404,
        )

    password_hash = None
    if kind == LinkType.password_protected:
        password_hash = await run_in_threadpool(hash_password, password)

    for attempt in range(settings.share_create_attempts):
        link = ShareLink(
            horse_id=horse_id,
            organization_id=ctx.organization_id,
            created_by=ctx.user_id,
            token=generate_token(),
            recipient_name=recipient_name,
            link_type=kind,
            expires_at=expires_at,
            password_hash=password_hash,
            view_count=0,
            max_views=final_max_views,
            shared_fields=fields,
        )
        db.add(link)
        try:
            await db.commit()
            await db.refresh(link)
            logger.info(f"Share link {link.id} created ({kind.value}) for horse {horse_id}")
            return link
        except IntegrityError:
            await db.rollback()
            if attempt == settings.share_create_attempts - 1:
                raise ShareLinkError(
                    "CREATE_FAILED",
                    "Failed to create a unique share link, please retry",
                    status_code=500,
                )
            logger.warning(f"Share token collision, regenerating (attempt {attempt + 1})")


# ─── Read ────────────────────────────────────────────────────────────────────

async def get_link_by_token(db: AsyncSession, token: str) -> Optional[ShareLink]:
    if not token or len(token) > 64:
        return None
    result = await db.execute(
        select(ShareLink)
        .where(ShareLink.token == token)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_member_link(db: AsyncSession, ctx: RequestContext, link_id: str) -> ShareLink:
    result = await db.execute(
        select(ShareLink).where(
            ShareLink.id == link_id,
            ShareLink.organization_id == ctx.organization_id,
        )
    )
    link = result.scalars().first()
    if link is None:
        raise ShareLinkError("LINK_NOT_FOUND", "Share link not found", status_code=404)
    return link


async def list_share_links(
    db: AsyncSession,
    ctx: RequestContext,
    horse_id: Optional[str] = None,
) -> list[ShareLink]:
    stmt = select(ShareLink).where(ShareLink.organization_id == ctx.organization_id)
    if horse_id:
        stmt = stmt.where(ShareLink.horse_id == horse_id)
    result = await db.execute(stmt.order_by(ShareLink.created_at.desc(), ShareLink.id))
    return list(result.scalars().all())


# ─── View counting ───────────────────────────────────────────────────────────

async def claim_view(db: AsyncSession, link_id: str) -> Optional[int]:
    """
    Count one view in a single conditional UPDATE and return the new count.
    None means the link was used up (or deleted) by a concurrent viewer.
    """
    stmt = (
        update(ShareLink)
        .where(
            ShareLink.id == link_id,
            or_(ShareLink.max_views.is_(None), ShareLink.view_count < ShareLink.max_views),
        )
        .values(view_count=ShareLink.view_count + 1)
        .returning(ShareLink.view_count)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    view_count = result.scalar_one_or_none()
    await db.commit()
    return view_count


# ─── Delete ──────────────────────────────────────────────────────────────────

async def delete_share_link(db: AsyncSession, ctx: RequestContext, link_id: str) -> None:
    """Creator or organization admin only; ledger rows go with it (cascade)."""
    link = await get_member_link(db, ctx, link_id)
    if link.created_by != ctx.user_id and not ctx.is_admin:
        raise ShareLinkError(
            "FORBIDDEN",
            "Only the creator or an admin can delete this link",
            status_code=403,
        )
    await db.delete(link)
    await db.commit()
    logger.info(f"Share link {link_id} deleted by {ctx.user_id}")
