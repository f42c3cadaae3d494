from __future__ import annotations

from collections.abc import Iterable

from applyflow.types import JobPosting


def deduplicate(postings: Iterable[JobPosting]) -> list[JobPosting]:
    seen: set[str] = set()
    unique: list[JobPosting] = []
    for posting in postings:
        if posting.apply_url in seen:
            continue
        seen.add(posting.apply_url)
        unique.append(posting)
    return unique
