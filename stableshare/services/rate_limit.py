import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import delete, select, and_, or_, case, func, literal, null
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from stableshare.core.config import get_settings
from stableshare.core.database import as_utc, utcnow
from stableshare.models.organization import generate_id
from stableshare.models.rate_limit import RateLimit

logger = logging.getLogger(__name__)
settings = get_settings()

SHARE_PASSWORD = "share_link_password"


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    remaining: int
    retry_after: Optional[int] = None   # seconds


def _window() -> timedelta:
    return timedelta(minutes=settings.password_window_minutes)


async def _current_entry(db: AsyncSession, action: str, identifier: str) -> Optional[RateLimit]:
    result = await db.execute(
        select(RateLimit).where(
            and_(RateLimit.action == action, RateLimit.identifier == identifier)
        )
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def check_rate_limit(
    db: AsyncSession,
    identifier: str,
    action: str = SHARE_PASSWORD,
    now: Optional[datetime] = None,
) -> RateLimitStatus:
    now = now or utcnow()
    entry = await _current_entry(db, action, identifier)
    if entry is None:
        return RateLimitStatus(allowed=True, remaining=settings.password_max_attempts)

    blocked_until = as_utc(entry.blocked_until)
    if blocked_until and blocked_until > now:
        retry_after = max(int((blocked_until - now).total_seconds() + 0.999), 1)
        return RateLimitStatus(allowed=False, remaining=0, retry_after=retry_after)

    # A lapsed block or an ended window starts over
    if blocked_until or as_utc(entry.window_start) + _window() <= now:
        return RateLimitStatus(allowed=True, remaining=settings.password_max_attempts)

    remaining = max(settings.password_max_attempts - entry.attempts, 0)
    return RateLimitStatus(allowed=remaining > 0, remaining=remaining)


def _insert_for(db: AsyncSession):
    if db.bind.dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def record_failed_attempt(
    db: AsyncSession,
    identifier: str,
    action: str = SHARE_PASSWORD,
    now: Optional[datetime] = None,
) -> RateLimitStatus:
    """
    Count one failure; blocks the identifier once the limit is reached.

    Insert-or-increment runs as a single statement so concurrent failures
    for the same identifier neither collide on the unique key nor lose counts.
    """
    now = now or utcnow()
    max_attempts = settings.password_max_attempts
    block_until = now + timedelta(minutes=settings.password_block_minutes)
    table = RateLimit.__table__
    ts_type = table.c.window_start.type

    # Window over, or an earlier block lapsed: counting starts again at 1
    restart = or_(
        table.c.window_start <= now - _window(),
        and_(table.c.blocked_until.is_not(None), table.c.blocked_until <= now),
    )
    attempts = case((restart, 1), else_=table.c.attempts + 1)
    first_block = literal(block_until, ts_type) if max_attempts <= 1 else null()

    stmt = _insert_for(db)(table).values(
        id=generate_id(),
        action=action,
        identifier=identifier,
        attempts=1,
        window_start=now,
        blocked_until=first_block,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.action, table.c.identifier],
        set_={
            "attempts": attempts,
            "window_start": case((restart, literal(now, ts_type)), else_=table.c.window_start),
            "blocked_until": case(
                (restart, first_block),
                (table.c.blocked_until.is_not(None), table.c.blocked_until),
                (attempts >= max_attempts, literal(block_until, ts_type)),
                else_=None,
            ),
            "updated_at": func.now(),
        },
    ).returning(table.c.attempts, table.c.blocked_until)

    row = (await db.execute(stmt)).one()
    await db.commit()

    blocked = as_utc(row.blocked_until)
    if blocked is not None and blocked > now:
        if row.attempts == max_attempts:
            logger.warning(f"Password attempts blocked for {action} ({row.attempts} failures)")
        retry_after = max(int((blocked - now).total_seconds() + 0.999), 1)
        return RateLimitStatus(allowed=False, remaining=0, retry_after=retry_after)
    return RateLimitStatus(allowed=True, remaining=max(max_attempts - row.attempts, 0))


async def clear_rate_limit(db: AsyncSession, identifier: str, action: str = SHARE_PASSWORD) -> None:
    await db.execute(
        delete(RateLimit).where(
            and_(RateLimit.action == action, RateLimit.identifier == identifier)
        )
    )
    await db.commit()


async def purge_stale_entries(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Scheduled cleanup: drop windows that ended and blocks that lapsed."""
    now = now or utcnow()
    cutoff = now - _window()
    result = await db.execute(
        delete(RateLimit).where(
            and_(
                RateLimit.window_start <= cutoff,
                or_(RateLimit.blocked_until.is_(None), RateLimit.blocked_until <= now),
            )
        )
    )
    await db.commit()
    return result.rowcount or 0
