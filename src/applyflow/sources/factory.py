from __future__ import annotations

from applyflow.config import Settings
from applyflow.sources.base import PostingSource
from applyflow.sources.indeed import IndeedScrapeSource
from applyflow.sources.jsearch import JSearchSource


def build_posting_source(settings: Settings) -> PostingSource:
    if settings.jsearch_api_key:
        return JSearchSource(
            api_key=settings.jsearch_api_key,
            base_url=settings.jsearch_base_url,
            timeout_sec=settings.http_timeout_sec,
        )
    return IndeedScrapeSource(
        base_url=settings.indeed_base_url,
        max_age_days=settings.indeed_max_age_days,
        timeout_sec=settings.http_timeout_sec,
    )
