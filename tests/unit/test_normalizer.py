from __future__ import annotations

from datetime import UTC, datetime, timedelta

from applyflow.core.normalizer import clean_text, coerce_posted_at, normalize_many, normalize_posting

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def _record(**overrides) -> dict:
    record = {
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "Austin, TX",
        "apply_url": "https://example.com/jobs/1",
        "description": "Build APIs",
        "posted_text": "Posted 2 days ago",
    }
    record.update(overrides)
    return record


def test_posting_without_apply_url_is_rejected() -> None:
    assert normalize_posting(_record(apply_url=""), source="Indeed", now=NOW) is None
    assert normalize_posting(_record(apply_url=None), source="Indeed", now=NOW) is None


def test_posting_without_title_or_company_is_rejected() -> None:
    assert normalize_posting(_record(title="  "), source="Indeed", now=NOW) is None
    assert normalize_posting(_record(company="<b></b>"), source="Indeed", now=NOW) is None


def test_normalize_many_drops_invalid_records_and_keeps_order() -> None:
    postings = normalize_many(
        [
            _record(apply_url="https://example.com/a"),
            _record(apply_url=""),
            _record(apply_url="https://example.com/b"),
        ],
        source="Indeed",
        now=NOW,
    )
    assert [item.apply_url for item in postings] == ["https://example.com/a", "https://example.com/b"]


def test_clean_text_strips_tags_and_decodes_entities() -> None:
    assert clean_text("<b>Senior</b>&nbsp;Engineer &amp; Lead\n\t ") == "Senior Engineer & Lead"
    assert clean_text(None) == ""


def test_description_snippet_is_capped() -> None:
    posting = normalize_posting(_record(description="word " * 200), source="Indeed", now=NOW)

    assert posting is not None
    assert len(posting.description_snippet) <= 300


def test_relative_posted_text_is_resolved() -> None:
    posting = normalize_posting(_record(), source="JSearch", now=NOW)

    assert posting is not None
    assert posting.posted_at == NOW - timedelta(days=2)
    assert posting.source == "JSearch"
    assert posting.match_score == 50


def test_coerce_posted_at_handles_iso_and_epoch_values() -> None:
    assert coerce_posted_at("2026-03-01T08:30:00Z", now=NOW) == datetime(2026, 3, 1, 8, 30, tzinfo=UTC)
    assert coerce_posted_at(1_700_000_000, now=NOW) == datetime.fromtimestamp(1_700_000_000, UTC)
    assert coerce_posted_at(1_700_000_000_000, now=NOW) == datetime.fromtimestamp(1_700_000_000, UTC)
    assert coerce_posted_at(None, now=NOW) == NOW
    assert coerce_posted_at("sometime", now=NOW) == NOW
