from __future__ import annotations

from datetime import UTC, datetime, timedelta

from applyflow.core.dates import resolve_relative_date

NOW = datetime(2026, 5, 20, 9, 15, tzinfo=UTC)


def test_days_ago_is_subtracted_from_now() -> None:
    assert resolve_relative_date("3 days ago", now=NOW) == NOW - timedelta(days=3)
    assert resolve_relative_date("Posted 30 days ago", now=NOW) == NOW - timedelta(days=30)


def test_fresh_markers_resolve_to_now() -> None:
    for text in ("today", "Just posted", "Active 2 days ago", "Posted Today"):
        assert resolve_relative_date(text, now=NOW) == NOW


def test_hours_ago_is_subtracted_from_now() -> None:
    assert resolve_relative_date("5 hours ago", now=NOW) == NOW - timedelta(hours=5)


def test_unrecognised_text_defaults_to_now() -> None:
    assert resolve_relative_date("", now=NOW) == NOW
    assert resolve_relative_date("last week", now=NOW) == NOW
