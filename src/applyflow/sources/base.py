"""Abstract definitions for job posting sources."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import requests

from applyflow.core.dates import Clock, utc_now
from applyflow.http import request_with_retry
from applyflow.types import JobPosting

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class PostingSource(ABC):
    """A place postings can be searched for one role at a time."""

    source_name: str = "generic"

    def __init__(self, *, timeout_sec: int = 15, clock: Clock = utc_now):
        self.timeout_sec = timeout_sec
        self.clock = clock

    @abstractmethod
    def search(self, role: str, *, location: str = "", keywords: list[str] | None = None) -> list[JobPosting]:
        """Return canonical postings for ``role``; raise on transport failure."""

    def _get(self, url: str, **kwargs: Any) -> requests.Response:
        return request_with_retry("GET", url, timeout_sec=self.timeout_sec, **kwargs)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"{self.__class__.__name__}(source_name={self.source_name!r})"
