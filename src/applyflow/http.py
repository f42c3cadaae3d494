from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (requests.Timeout, requests.ConnectionError)


def request_with_retry(method: str, url: str, *, timeout_sec: int, **kwargs: Any) -> requests.Response:
    """Issue one HTTP request, retrying a single time on timeout or connection errors."""
    try:
        return requests.request(method, url, timeout=timeout_sec, **kwargs)
    except RETRYABLE_ERRORS as exc:
        logger.warning("%s %s failed (%s), retrying once", method, url, exc)
    return requests.request(method, url, timeout=timeout_sec, **kwargs)
