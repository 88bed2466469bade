from datetime import timedelta

import pytest
from sqlalchemy import delete, func, select

from stableshare.core.database import utcnow
from stableshare.models.horse import Horse
from stableshare.models.share_link import LinkType, ShareLink, ShareLinkView, generate_token
from stableshare.services.ledger import ClientInfo, record_view
from conftest import make_link


def test_generate_token():
    token = generate_token()

    assert len(token) == 64
    int(token, 16)
    assert generate_token() != token


def test_link_status():
    now = utcnow()
    link = ShareLink(
        link_type=LinkType.one_time,
        expires_at=now + timedelta(days=1),
        view_count=0,
        max_views=1,
    )

    assert link.status(now) == "active"
    link.view_count = 1
    assert link.is_exhausted()
    assert link.status(now) == "exhausted"
    assert link.status(now + timedelta(days=2)) == "expired"


def test_standard_link_is_never_exhausted():
    link = ShareLink(link_type=LinkType.standard, expires_at=utcnow() + timedelta(days=1), view_count=500)

    assert not link.is_exhausted()
    assert not link.requires_password()


def test_expiry_boundary_is_inclusive():
    now = utcnow()
    link = ShareLink(link_type=LinkType.standard, expires_at=now)

    assert link.is_expired(now)
    assert not link.is_expired(now - timedelta(microseconds=1))


@pytest.mark.asyncio
async def test_deleting_horse_removes_links_and_views(db, stable, session_factory):
    link = await make_link(db, stable)
    assert await record_view(db, link.id, ClientInfo(ip_address="10.0.0.0"))

    await db.execute(delete(Horse).where(Horse.id == stable.horse_id))
    await db.commit()

    async with session_factory() as session:
        links = await session.execute(select(func.count()).select_from(ShareLink))
        views = await session.execute(select(func.count()).select_from(ShareLinkView))
        assert links.scalar_one() == 0
        assert views.scalar_one() == 0
