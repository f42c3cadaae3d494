from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from applyflow.config import Settings, get_settings
from applyflow.llm.prompts import (
    COLD_EMAIL_PROMPT,
    FIND_CONTACTS_PROMPT,
    FOLLOW_UP_PROMPT,
    SCORE_RESUME_PROMPT,
)
from applyflow.llm.providers import ProviderPool, UpstreamError
from applyflow.types import Contact, ContactSuggestions, EmailDraft, EmailType, JobDescriptor, ResumeScore

logger = logging.getLogger(__name__)

DEFAULT_EMAIL_BODY = "Hi,\n\nI am interested in this position.\n\nBest regards"
DEFAULT_RESUME_SUMMARY = "Experienced professional looking for new opportunities"


class OutreachAssistant:
    def __init__(self, settings: Settings | None = None, pool: ProviderPool | None = None):
        self.settings = settings or get_settings()
        self.pool = pool or ProviderPool(self.settings)

    def find_contacts(self, job: JobDescriptor) -> ContactSuggestions:
        prompt = FIND_CONTACTS_PROMPT.format(
            title=job.title or "Unknown Role",
            company=job.company or "Unknown Company",
            location=job.location,
        )
        data = self._call_json(prompt=prompt, temperature=0.7, max_tokens=800)
        raw_contacts = data.get("contacts")
        if not isinstance(raw_contacts, list):
            logger.warning("Model output for action=find_contacts has no contact list; using default")
            return ContactSuggestions()

        contacts: list[Contact] = []
        for item in raw_contacts:
            try:
                contacts.append(Contact.model_validate(item))
            except ValidationError:
                logger.warning("Dropping invalid contact from model output: %r", item)
        return ContactSuggestions(contacts=contacts)

    def generate_email(
        self,
        job: JobDescriptor,
        *,
        contact: Contact | None = None,
        resume_text: str = "",
        email_type: EmailType = "cold",
    ) -> EmailDraft:
        if email_type == "follow_up":
            prompt = FOLLOW_UP_PROMPT.format(
                title=job.title or "the position",
                company=job.company or "your company",
                sent_date=job.email_sent_at or "2 weeks ago",
            )
        else:
            prompt = COLD_EMAIL_PROMPT.format(
                title=job.title or "the position",
                company=job.company or "your company",
                description=job.summary or "Not provided",
                resume_text=resume_text or DEFAULT_RESUME_SUMMARY,
                contact_name=(contact.name if contact else "") or "Hiring Manager",
            )

        contact_email = contact.email if contact else ""
        default = EmailDraft(
            subject=f"Application: {job.title} at {job.company}",
            body=DEFAULT_EMAIL_BODY,
            contact_email=contact_email,
        )
        data = self._call_json(prompt=prompt, temperature=0.8, max_tokens=600)
        draft = self._validate(EmailDraft, data, default=default, action="generate_email")
        if not draft.contact_email and contact_email:
            draft = draft.model_copy(update={"contact_email": contact_email})
        return draft

    def score_resume(self, *, resume_text: str, job_description: str) -> ResumeScore:
        if not resume_text or not job_description:
            raise ValueError("Resume and job description are required")

        prompt = SCORE_RESUME_PROMPT.format(job_description=job_description, resume_text=resume_text)
        data = self._call_json(prompt=prompt, temperature=0.3, max_tokens=500)
        score = self._validate(ResumeScore, data, default=ResumeScore(), action="score_resume")
        return score.model_copy(update={"overall_score": max(0, min(100, score.overall_score))})

    def _call_json(self, *, prompt: str, temperature: float, max_tokens: int) -> dict[str, Any]:
        providers = self.pool.available()
        if not providers:
            raise UpstreamError("No language model provider is configured")

        last_error: Exception | None = None
        for provider, model in providers:
            try:
                return provider.complete_json(
                    model=model,
                    prompt=prompt,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as exc:
                last_error = exc
                logger.warning("LLM JSON call failed provider=%s error=%s", provider.config.name, exc)
        raise UpstreamError(str(last_error) or "AI processing failed")

    @staticmethod
    def _validate(model_cls, data: dict[str, Any], *, default, action: str):
        if not data:
            logger.warning("Empty or unparseable model output for action=%s; using default", action)
            return default
        try:
            return model_cls.model_validate(data)
        except ValidationError:
            logger.warning("Invalid model payload for action=%s; using default", action)
            return default
