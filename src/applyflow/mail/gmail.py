"""Gmail OAuth2 + send via the Gmail REST API."""
from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from email.message import EmailMessage
from urllib.parse import urlencode

import requests

from applyflow.config import Settings
from applyflow.http import request_with_retry

logger = logging.getLogger(__name__)

AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
SEND_ENDPOINT = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
SEND_SCOPE = "https://www.googleapis.com/auth/gmail.send"


class MailError(Exception):
    pass


class ReauthRequiredError(MailError):
    """The stored refresh token was expired or revoked."""


def sign_state(user_id: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), user_id.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{user_id}.{digest}"


def verify_state(state: str, secret: str) -> str | None:
    user_id, _, digest = (state or "").rpartition(".")
    if not user_id or not digest:
        return None
    expected = sign_state(user_id, secret).rpartition(".")[2]
    if not hmac.compare_digest(expected, digest):
        return None
    return user_id


def build_message(*, sender: str, to: str, subject: str, body: str, cc: str | None = None) -> EmailMessage:
    message = EmailMessage()
    if sender:
        message["From"] = sender
    message["To"] = to
    if cc:
        message["Cc"] = cc
    message["Subject"] = subject
    message.set_content(body)
    return message


def encode_message(message: EmailMessage) -> str:
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")


class GmailClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    def authorization_url(self, user_id: str) -> str:
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_redirect_uri,
            "response_type": "code",
            "scope": SEND_SCOPE,
            "access_type": "offline",
            "prompt": "consent",
            "state": sign_state(user_id, self.settings.secret_key),
        }
        return f"{AUTH_ENDPOINT}?{urlencode(params)}"

    def exchange_code(self, code: str) -> str:
        response = self._post_token(
            {
                "code": code,
                "client_id": self.settings.google_client_id,
                "client_secret": self.settings.google_client_secret,
                "redirect_uri": self.settings.google_redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        if response.status_code != 200:
            raise MailError(_error_message(response, "Authorization code exchange failed"))

        refresh_token = response.json().get("refresh_token")
        if not refresh_token:
            raise MailError("Google did not return a refresh token")
        return refresh_token

    def access_token(self, refresh_token: str) -> str:
        response = self._post_token(
            {
                "refresh_token": refresh_token,
                "client_id": self.settings.google_client_id,
                "client_secret": self.settings.google_client_secret,
                "grant_type": "refresh_token",
            }
        )
        if response.status_code in (400, 401) and _error_code(response) in {"invalid_grant", "unauthorized_client"}:
            raise ReauthRequiredError("Gmail token expired. Please reconnect your Gmail account.")
        if response.status_code != 200:
            raise MailError(_error_message(response, "Could not refresh Gmail access"))
        return response.json()["access_token"]

    def send(self, refresh_token: str, message: EmailMessage) -> str:
        token = self.access_token(refresh_token)
        try:
            response = request_with_retry(
                "POST",
                SEND_ENDPOINT,
                timeout_sec=self.settings.http_timeout_sec,
                headers={"Authorization": f"Bearer {token}"},
                json={"raw": encode_message(message)},
            )
        except requests.RequestException as exc:
            raise MailError(f"Failed to reach Gmail: {exc}") from exc
        if response.status_code == 401:
            raise ReauthRequiredError("Gmail token expired. Please reconnect your Gmail account.")
        if response.status_code >= 400:
            raise MailError(_error_message(response, "Failed to send email"))

        message_id = response.json().get("id", "")
        logger.info("Gmail message sent id=%s", message_id)
        return message_id

    def _post_token(self, data: dict[str, str]) -> requests.Response:
        try:
            return request_with_retry(
                "POST", TOKEN_ENDPOINT, timeout_sec=self.settings.http_timeout_sec, data=data
            )
        except requests.RequestException as exc:
            raise MailError(f"Failed to reach Google OAuth: {exc}") from exc


def _payload(response: requests.Response) -> dict:
    try:
        value = response.json()
    except ValueError:
        return {}
    return value if isinstance(value, dict) else {}


def _error_code(response: requests.Response) -> str:
    error = _payload(response).get("error")
    if isinstance(error, dict):
        return str(error.get("status", ""))
    return str(error or "")


def _error_message(response: requests.Response, fallback: str) -> str:
    payload = _payload(response)
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if payload.get("error_description"):
        return str(payload["error_description"])
    return f"{fallback} (status {response.status_code})"
