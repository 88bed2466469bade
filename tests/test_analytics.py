from datetime import datetime, timedelta, timezone

from stableshare.models.share_link import ShareLinkView
from stableshare.services.analytics import summarize_views

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _view(hours_ago, ip=None, country=None):
    return ShareLinkView(
        share_link_id="link-1",
        viewed_at=NOW - timedelta(hours=hours_ago),
        ip_address=ip,
        country=country,
    )


def test_empty_ledger():
    summary = summarize_views([], now=NOW)

    assert summary["total_views"] == 0
    assert summary["unique_visitors"] == 0
    assert summary["last_viewed"] is None
    assert summary["views"] == []


def test_summary_counts():
    views = [
        _view(1, "10.0.0.0", "DK"),
        _view(30, "10.0.0.0", "DK"),
        _view(24 * 10, "172.16.5.0", None),
    ]

    summary = summarize_views(views, now=NOW)

    assert summary["total_views"] == 3
    assert summary["unique_visitors"] == 2
    assert summary["recent_views"] == 2
    assert summary["last_viewed"] == (NOW - timedelta(hours=1)).isoformat()
    assert summary["views_by_country"] == {"DK": 2, "Unknown": 1}
    assert summary["views_by_date"] == {"2026-10-08": 1, "2026-10-17": 1, "2026-10-18": 1}
    assert list(summary["views_by_date"]) == sorted(summary["views_by_date"])


def test_first_seen_is_the_earliest_view():
    views = [_view(1, "10.0.0.0"), _view(5, "10.0.0.0"), _view(9, "10.0.0.0")]

    summary = summarize_views(views, now=NOW)

    assert summary["ip_first_seen"] == {"10.0.0.0": (NOW - timedelta(hours=9)).isoformat()}


def test_latest_views_are_capped():
    views = [_view(h, f"10.0.{h}.0") for h in range(15)]

    summary = summarize_views(views, now=NOW, latest=4)

    assert len(summary["views"]) == 4
    assert summary["views"][0]["ip_address"] == "10.0.0.0"
    assert summary["total_views"] == 15
