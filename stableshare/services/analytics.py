from collections import Counter
from datetime import datetime, timedelta
from typing import Optional, Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from stableshare.core.config import get_settings
from stableshare.core.database import as_utc, utcnow
from stableshare.models.share_link import ShareLinkView
from stableshare.services import share as share_service
from stableshare.services.auth import RequestContext

settings = get_settings()


def _view_dict(view: ShareLinkView) -> dict:
    return {
        "viewed_at": as_utc(view.viewed_at).isoformat(),
        "ip_address": view.ip_address,
        "user_agent": view.user_agent,
        "referer": view.referer,
        "country": view.country,
        "city": view.city,
        "region": view.region,
    }


def summarize_views(
    views: Sequence[ShareLinkView],
    now: Optional[datetime] = None,
    recent_days: Optional[int] = None,
    latest: Optional[int] = None,
) -> dict:
    """Aggregate ledger rows; expects views ordered newest first."""
    now = now or utcnow()
    recent_cutoff = now - timedelta(days=recent_days or settings.analytics_recent_days)

    by_date: Counter = Counter()
    by_country: Counter = Counter()
    ip_first_seen: dict[str, str] = {}
    recent = 0

    for view in views:
        viewed_at = as_utc(view.viewed_at)
        by_date[viewed_at.date().isoformat()] += 1
        by_country[view.country or "Unknown"] += 1
        if viewed_at >= recent_cutoff:
            recent += 1
        if view.ip_address:
            # newest first, so the last write wins with the earliest view
            ip_first_seen[view.ip_address] = viewed_at.isoformat()

    return {
        "total_views": len(views),
        "unique_visitors": len(ip_first_seen),
        "recent_views": recent,
        "last_viewed": as_utc(views[0].viewed_at).isoformat() if views else None,
        "views_by_date": dict(sorted(by_date.items())),
        "views_by_country": dict(by_country.most_common()),
        "ip_first_seen": ip_first_seen,
        "views": [_view_dict(v) for v in views[: latest or settings.analytics_latest_views]],
    }


async def get_share_link_analytics(db: AsyncSession, ctx: RequestContext, link_id: str) -> dict:
    link = await share_service.get_member_link(db, ctx, link_id)
    result = await db.execute(
        select(ShareLinkView)
        .where(ShareLinkView.share_link_id == link.id)
        .order_by(ShareLinkView.viewed_at.desc(), ShareLinkView.id)
    )
    views = result.scalars().all()
    summary = summarize_views(views)
    summary["share_link_id"] = link.id
    return summary
