from __future__ import annotations

import logging

from applyflow.config import Settings
from applyflow.db.repositories import Repository
from applyflow.mail.gmail import GmailClient, MailError, build_message, verify_state

logger = logging.getLogger(__name__)


class MailNotConnectedError(MailError):
    def __init__(self, auth_url: str):
        super().__init__("Gmail not connected")
        self.auth_url = auth_url


class MailService:
    def __init__(self, *, repo: Repository, client: GmailClient, settings: Settings):
        self.repo = repo
        self.client = client
        self.settings = settings

    def complete_authorization(self, *, code: str, state: str) -> bool:
        user_id = verify_state(state, self.settings.secret_key)
        if user_id is None:
            logger.warning("Rejected Gmail OAuth callback with an invalid state")
            return False

        try:
            refresh_token = self.client.exchange_code(code)
        except Exception as exc:
            logger.warning("Gmail OAuth callback failed user_id=%s error=%s", user_id, exc)
            return False

        self.repo.save_gmail_token(user_id, refresh_token)
        logger.info("Gmail connected user_id=%s", user_id)
        return True

    def send(
        self,
        *,
        user_id: str,
        sender: str,
        to: str,
        subject: str,
        body: str,
        cc: str | None = None,
        application_id: int | None = None,
    ) -> str:
        credential = self.repo.get_gmail_token(user_id)
        if credential is None:
            raise MailNotConnectedError(self.client.authorization_url(user_id))

        message = build_message(sender=sender, to=to, cc=cc, subject=subject, body=body)
        message_id = self.client.send(credential.refresh_token, message)

        if application_id is not None:
            try:
                self.repo.set_application_email_sent(user_id, application_id, True)
            except ValueError:
                logger.warning(
                    "Email sent but application %s was not found for user_id=%s",
                    application_id,
                    user_id,
                )
        return message_id
