from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from applyflow.config import Settings
from applyflow.http import request_with_retry

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    pass


@dataclass(slots=True, frozen=True)
class AuthenticatedUser:
    id: str
    email: str = ""


class SupabaseIdentityVerifier:
    """Resolve a Supabase access token to its user via the Auth REST API."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def verify(self, token: str) -> AuthenticatedUser:
        if not self.settings.supabase_url:
            logger.error("SUPABASE_URL is not configured; rejecting bearer token")
            raise InvalidTokenError("Identity provider is not configured")

        try:
            response = request_with_retry(
                "GET",
                f"{self.settings.supabase_url.rstrip('/')}/auth/v1/user",
                timeout_sec=self.settings.http_timeout_sec,
                headers={
                    "apikey": self.settings.supabase_anon_key,
                    "Authorization": f"Bearer {token}",
                },
            )
        except requests.RequestException as exc:
            logger.warning("Token verification request failed: %s", exc)
            raise InvalidTokenError("Could not verify token") from exc

        if response.status_code != 200:
            raise InvalidTokenError("Invalid token")

        payload = response.json()
        user_id = payload.get("id")
        if not user_id:
            raise InvalidTokenError("Invalid token")
        return AuthenticatedUser(id=str(user_id), email=payload.get("email") or "")
