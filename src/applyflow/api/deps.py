from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from applyflow.auth import AuthenticatedUser, InvalidTokenError, SupabaseIdentityVerifier
from applyflow.config import Settings, get_settings
from applyflow.core.runtime import get_throttle_store
from applyflow.core.throttle import DiscoveryThrottle
from applyflow.db.session import get_db_session
from applyflow.llm.assistant import OutreachAssistant
from applyflow.mail.gmail import GmailClient
from applyflow.sources.base import PostingSource
from applyflow.sources.factory import build_posting_source


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_identity_verifier(settings: Settings = Depends(get_settings)) -> SupabaseIdentityVerifier:
    return SupabaseIdentityVerifier(settings)


def get_current_user(
    authorization: str | None = Header(default=None),
    verifier: SupabaseIdentityVerifier = Depends(get_identity_verifier),
) -> AuthenticatedUser:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization.removeprefix("Bearer ").strip()
    try:
        return verifier.verify(token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc


def get_posting_source(settings: Settings = Depends(get_settings)) -> PostingSource:
    return build_posting_source(settings)


def get_discovery_throttle(settings: Settings = Depends(get_settings)) -> DiscoveryThrottle:
    return DiscoveryThrottle(get_throttle_store(), window_sec=settings.discovery_cooldown_sec)


def get_assistant(settings: Settings = Depends(get_settings)) -> OutreachAssistant:
    return OutreachAssistant(settings)


def get_gmail_client(settings: Settings = Depends(get_settings)) -> GmailClient:
    return GmailClient(settings)
