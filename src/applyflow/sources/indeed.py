"""Best-effort Indeed search scraping.

Indeed does not offer a public search API, so postings are pulled out of the
result page markup. Card extraction is tried first; when it finds nothing the
job-card JSON Indeed embeds in a script tag is used instead. Parsing never
raises: a page we cannot read yields no postings.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from applyflow.core.dates import Clock, utc_now
from applyflow.core.normalizer import normalize_posting
from applyflow.sources.base import USER_AGENT, PostingSource
from applyflow.types import JobPosting

logger = logging.getLogger(__name__)

SOURCE_LABEL = "Indeed"
DEFAULT_BASE_URL = "https://www.indeed.com"
MAX_CARDS = 20
CARD_CLASS = "job_seen_beacon"

_EMBEDDED_JSON_PATTERN = re.compile(
    r"window\.mosaic\.providerData\[\"mosaic-provider-jobcards\"\]\s*=\s*"
)


class IndeedScrapeSource(PostingSource):
    source_name = "indeed"

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        max_age_days: int = 14,
        timeout_sec: int = 15,
        clock: Clock = utc_now,
    ):
        super().__init__(timeout_sec=timeout_sec, clock=clock)
        self.base_url = base_url.rstrip("/")
        self.max_age_days = max_age_days

    def search(self, role: str, *, location: str = "", keywords: list[str] | None = None) -> list[JobPosting]:
        query = " ".join([role, *(keywords or [])]).strip()
        response = self._get(
            f"{self.base_url}/jobs",
            params={"q": query, "l": location or "", "fromage": self.max_age_days, "sort": "date"},
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
            },
        )
        response.raise_for_status()
        postings = parse_indeed_html(response.text, now=self.clock(), base_url=self.base_url)
        logger.debug("Indeed role=%r returned %d postings", role, len(postings))
        return postings


def parse_indeed_html(markup: str, *, now: datetime, base_url: str = DEFAULT_BASE_URL) -> list[JobPosting]:
    try:
        soup = BeautifulSoup(markup or "", "html.parser")
    except Exception as exc:
        logger.warning("Could not parse Indeed markup: %s", exc)
        return []

    postings: list[JobPosting] = []
    for card in soup.find_all("div", class_=CARD_CLASS)[:MAX_CARDS]:
        try:
            posting = normalize_posting(extract_card(card, base_url=base_url), source=SOURCE_LABEL, now=now)
        except Exception as exc:
            logger.debug("Skipping malformed job card: %s", exc)
            continue
        if posting is not None:
            postings.append(posting)

    if postings:
        return postings

    return parse_embedded_job_cards(soup, now=now, base_url=base_url)


def extract_card(card: Tag, *, base_url: str = DEFAULT_BASE_URL) -> dict[str, Any]:
    link = _first(card, 'a[href*="/rc/clk"]', 'a[href*="/viewjob"]', "a.jcs-JobTitle")
    href = link.get("href", "") if link is not None else ""

    return {
        "title": _text(card, ".jobTitle span[title]", ".jobTitle span", ".jobTitle"),
        "company": _text(card, ".companyName", '[data-testid="company-name"]'),
        "location": _text(card, ".companyLocation", '[data-testid="text-location"]'),
        "apply_url": urljoin(f"{base_url}/", href) if href else "",
        "description": _text(card, ".job-snippet", '[data-testid="jobsnippet_footer"]'),
        "posted_text": _text(card, 'span[class^="date"]', '[data-testid="myJobsStateDate"]'),
    }


def parse_embedded_job_cards(
    soup: BeautifulSoup,
    *,
    now: datetime,
    base_url: str = DEFAULT_BASE_URL,
) -> list[JobPosting]:
    for script in soup.find_all("script"):
        content = script.string or script.get_text()
        match = _EMBEDDED_JSON_PATTERN.search(content or "")
        if not match:
            continue

        try:
            data, _ = json.JSONDecoder().raw_decode(content, match.end())
            results = data["metaData"]["mosaicProviderJobCardsModel"]["results"]
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not parse embedded Indeed job data: %s", exc)
            return []
        if not isinstance(results, list):
            logger.warning("Embedded Indeed job data has no result list")
            return []

        postings: list[JobPosting] = []
        for result in results[:MAX_CARDS]:
            if not isinstance(result, dict):
                continue
            try:
                posting = normalize_posting(
                    embedded_result_to_record(result, base_url=base_url),
                    source=SOURCE_LABEL,
                    now=now,
                )
            except Exception as exc:
                logger.debug("Skipping malformed embedded job result: %s", exc)
                continue
            if posting is not None:
                postings.append(posting)
        return postings

    return []


def embedded_result_to_record(result: dict[str, Any], *, base_url: str = DEFAULT_BASE_URL) -> dict[str, Any]:
    apply_url = result.get("thirdPartyApplyUrl") or ""
    if not apply_url and result.get("jobkey"):
        apply_url = f"{base_url}/viewjob?jk={result['jobkey']}"

    return {
        "title": result.get("displayTitle") or result.get("title") or "",
        "company": result.get("company") or "",
        "location": result.get("formattedLocation") or result.get("location") or "",
        "apply_url": apply_url,
        "description": result.get("snippet") or result.get("displaySnippet") or "",
        "posted_at": result.get("pubDate"),
    }


def _first(card: Tag, *selectors: str) -> Tag | None:
    for selector in selectors:
        found = card.select_one(selector)
        if found is not None:
            return found
    return None


def _text(card: Tag, *selectors: str) -> str:
    found = _first(card, *selectors)
    if found is None:
        return ""
    return found.get_text(" ")
