from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from applyflow.db.models import Application, GmailToken, Job, UserPreference
from applyflow.types import APPLICATION_STATUSES, JobPosting, JobPreferences

logger = logging.getLogger(__name__)


class Repository:
    """Persistence for the per-user collections.

    Every method takes the owning ``user_id`` and never touches rows that
    belong to somebody else.
    """

    def __init__(self, session: Session):
        self.session = session

    # preferences

    def get_preferences(self, user_id: str) -> UserPreference | None:
        return self.session.scalar(select(UserPreference).where(UserPreference.user_id == user_id))

    def load_preferences(self, user_id: str) -> JobPreferences | None:
        row = self.get_preferences(user_id)
        if row is None:
            return None
        return JobPreferences(
            roles=row.roles,
            keywords=row.keywords,
            location=row.location,
            experience_level=row.experience_level,
            tech_stack=row.tech_stack,
        )

    def save_preferences(self, user_id: str, preferences: JobPreferences) -> UserPreference:
        values = preferences.model_dump(by_alias=False)
        existing = self.get_preferences(user_id)
        if existing:
            for key, value in values.items():
                setattr(existing, key, value)
            obj = existing
        else:
            obj = UserPreference(user_id=user_id, **values)
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    # jobs

    def get_job(self, user_id: str, job_id: int) -> Job | None:
        return self.session.scalar(select(Job).where(Job.user_id == user_id, Job.id == job_id))

    def get_job_by_url(self, user_id: str, apply_url: str) -> Job | None:
        return self.session.scalar(select(Job).where(Job.user_id == user_id, Job.apply_url == apply_url))

    def list_jobs(self, user_id: str, limit: int = 200) -> list[Job]:
        statement = (
            select(Job)
            .where(Job.user_id == user_id)
            .order_by(Job.posted_at.desc(), Job.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def insert_job(self, user_id: str, posting: JobPosting) -> Job | None:
        """Insert a discovered posting; ``None`` when the (user, url) pair already exists."""
        job = Job(
            user_id=user_id,
            title=posting.title,
            company=posting.company,
            location=posting.location,
            apply_url=posting.apply_url,
            posted_at=posting.posted_at,
            description_snippet=posting.description_snippet,
            source=posting.source,
            match_score=posting.match_score,
        )
        self.session.add(job)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Job already stored user_id=%s url=%s", user_id, posting.apply_url)
            return None
        self.session.refresh(job)
        return job

    def delete_job(self, user_id: str, job_id: int) -> None:
        job = self.get_job(user_id, job_id)
        if not job:
            raise ValueError(f"job {job_id} not found")

        self.session.execute(
            update(Application)
            .where(Application.user_id == user_id, Application.job_id == job_id)
            .values(job_id=None)
        )
        self.session.delete(job)
        self.session.commit()

    # applications

    def get_application(self, user_id: str, application_id: int) -> Application | None:
        return self.session.scalar(
            select(Application).where(Application.user_id == user_id, Application.id == application_id)
        )

    def list_applications(self, user_id: str) -> list[Application]:
        statement = (
            select(Application)
            .where(Application.user_id == user_id)
            .order_by(Application.applied_at.desc(), Application.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def create_application(self, user_id: str, job_id: int) -> Application:
        job = self.get_job(user_id, job_id)
        if not job:
            raise ValueError(f"job {job_id} not found")

        existing = self.session.scalar(
            select(Application).where(Application.user_id == user_id, Application.job_id == job_id)
        )
        if existing:
            return existing

        application = Application(
            user_id=user_id,
            job_id=job.id,
            company=job.company,
            role=job.title,
            location=job.location,
            apply_url=job.apply_url,
            posted_at=job.posted_at,
            applied_at=datetime.now(UTC),
            status="Applied",
            email_sent=False,
        )
        self.session.add(application)
        self.session.commit()
        self.session.refresh(application)
        return application

    def update_application_status(self, user_id: str, application_id: int, status: str) -> Application:
        if status not in APPLICATION_STATUSES:
            raise ValueError(f"unknown status {status!r}")
        return self._update_application(user_id, application_id, status=status)

    def set_application_email_sent(
        self,
        user_id: str,
        application_id: int,
        email_sent: bool = True,
    ) -> Application:
        return self._update_application(
            user_id,
            application_id,
            email_sent=email_sent,
            email_sent_at=datetime.now(UTC) if email_sent else None,
        )

    def update_application_notes(self, user_id: str, application_id: int, notes: str) -> Application:
        return self._update_application(user_id, application_id, notes=notes)

    def update_application_contact(
        self,
        user_id: str,
        application_id: int,
        *,
        contact_name: str,
        contact_email: str,
    ) -> Application:
        return self._update_application(
            user_id,
            application_id,
            contact_name=contact_name,
            contact_email=contact_email,
        )

    def delete_application(self, user_id: str, application_id: int) -> None:
        application = self.get_application(user_id, application_id)
        if not application:
            raise ValueError(f"application {application_id} not found")
        self.session.delete(application)
        self.session.commit()

    def _update_application(self, user_id: str, application_id: int, **values) -> Application:
        application = self.get_application(user_id, application_id)
        if not application:
            raise ValueError(f"application {application_id} not found")

        for key, value in values.items():
            setattr(application, key, value)
        self.session.commit()
        self.session.refresh(application)
        return application

    # mail credentials

    def get_gmail_token(self, user_id: str) -> GmailToken | None:
        return self.session.scalar(select(GmailToken).where(GmailToken.user_id == user_id))

    def save_gmail_token(self, user_id: str, refresh_token: str) -> GmailToken:
        existing = self.get_gmail_token(user_id)
        if existing:
            existing.refresh_token = refresh_token
            obj = existing
        else:
            obj = GmailToken(user_id=user_id, refresh_token=refresh_token)
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj
