from __future__ import annotations

import html
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from applyflow.core.dates import resolve_relative_date
from applyflow.types import JobPosting

SNIPPET_MAX_CHARS = 300

_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_text(raw: Any) -> str:
    if raw is None:
        return ""
    text = _TAG_PATTERN.sub("", str(raw))
    text = html.unescape(text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def truncate(text: str, limit: int = SNIPPET_MAX_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip()


def coerce_posted_at(value: Any, *, now: datetime) -> datetime:
    if value is None or value == "":
        return now

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    if isinstance(value, bool):
        return now

    if isinstance(value, (int, float)):
        return _from_epoch(float(value), now=now)

    text = str(value).strip()
    if text.isdigit():
        return _from_epoch(float(text), now=now)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return resolve_relative_date(text, now=now)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _from_epoch(value: float, *, now: datetime) -> datetime:
    # Millisecond timestamps are what the embedded job-card JSON uses.
    if value > 1e11:
        value = value / 1000.0
    try:
        return datetime.fromtimestamp(value, UTC)
    except (OverflowError, OSError, ValueError):
        return now


def normalize_posting(record: Mapping[str, Any], *, source: str, now: datetime) -> JobPosting | None:
    title = clean_text(record.get("title"))
    company = clean_text(record.get("company"))
    apply_url = str(record.get("apply_url") or "").strip()
    if not title or not company or not apply_url:
        return None

    posted_raw = record.get("posted_at")
    if posted_raw in (None, ""):
        posted_raw = clean_text(record.get("posted_text"))

    return JobPosting(
        title=title,
        company=company,
        location=clean_text(record.get("location")),
        apply_url=apply_url,
        posted_at=coerce_posted_at(posted_raw, now=now),
        description_snippet=truncate(clean_text(record.get("description"))),
        source=source,
    )


def normalize_many(
    records: list[Mapping[str, Any]],
    *,
    source: str,
    now: datetime,
) -> list[JobPosting]:
    postings: list[JobPosting] = []
    for record in records:
        posting = normalize_posting(record, source=source, now=now)
        if posting is not None:
            postings.append(posting)
    return postings
