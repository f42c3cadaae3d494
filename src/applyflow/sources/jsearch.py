"""JSearch API (RapidAPI): aggregated job listings."""
from __future__ import annotations

import logging
from typing import Any

from applyflow.core.dates import Clock, utc_now
from applyflow.core.normalizer import normalize_many
from applyflow.sources.base import PostingSource
from applyflow.types import JobPosting

logger = logging.getLogger(__name__)

SOURCE_LABEL = "JSearch"
MAX_RESULTS = 20


class JSearchSource(PostingSource):
    source_name = "jsearch"

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://jsearch.p.rapidapi.com",
        timeout_sec: int = 15,
        clock: Clock = utc_now,
    ):
        super().__init__(timeout_sec=timeout_sec, clock=clock)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def search(self, role: str, *, location: str = "", keywords: list[str] | None = None) -> list[JobPosting]:
        query = " ".join([role, *(keywords or [])]).strip()
        if location:
            query = f"{query} in {location}"

        response = self._get(
            f"{self.base_url}/search",
            params={"query": query, "page": "1", "num_pages": "1", "date_posted": "week"},
            headers={
                "X-RapidAPI-Key": self.api_key,
                "X-RapidAPI-Host": "jsearch.p.rapidapi.com",
            },
        )
        if response.status_code == 403:
            logger.warning("JSearch rejected the API key (403); check the RapidAPI subscription")
            return []
        response.raise_for_status()

        hits = response.json().get("data") or []
        records = [hit_to_record(hit) for hit in hits[:MAX_RESULTS] if isinstance(hit, dict)]
        postings = normalize_many(records, source=SOURCE_LABEL, now=self.clock())
        logger.debug("JSearch role=%r returned %d postings", role, len(postings))
        return postings


def hit_to_record(hit: dict[str, Any]) -> dict[str, Any]:
    if hit.get("job_is_remote"):
        location = "Remote"
    else:
        parts = [hit.get("job_city"), hit.get("job_state"), hit.get("job_country")]
        location = ", ".join(str(part) for part in parts if part)

    return {
        "title": hit.get("job_title", ""),
        "company": hit.get("employer_name", ""),
        "location": location,
        "apply_url": hit.get("job_apply_link") or hit.get("job_google_link") or "",
        "description": hit.get("job_description", ""),
        "posted_at": hit.get("job_posted_at_datetime_utc") or hit.get("job_posted_at_timestamp"),
    }
