from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from applyflow.types import (
    ApplicationStatus,
    CamelModel,
    Contact,
    DiscoveryResult,
    EmailType,
    JobDescriptor,
    JobPreferences,
)


class DiscoverRequest(BaseModel):
    preferences: JobPreferences | None = None


class DiscoverResponse(CamelModel):
    message: str
    inserted_count: int
    total_candidates: int
    # Older web clients read these two.
    count: int
    total: int

    @classmethod
    def from_result(cls, result: DiscoveryResult, *, message: str) -> DiscoverResponse:
        return cls(
            message=message,
            inserted_count=result.inserted_count,
            total_candidates=result.total_candidates,
            count=result.inserted_count,
            total=result.total_candidates,
        )


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    company: str
    location: str
    apply_url: str
    posted_at: datetime | None
    description_snippet: str
    source: str
    match_score: int
    created_at: datetime


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int | None
    company: str
    role: str
    location: str
    apply_url: str
    posted_at: datetime | None
    applied_at: datetime
    status: str
    email_sent: bool
    email_sent_at: datetime | None
    contact_name: str
    contact_email: str
    notes: str
    updated_at: datetime


class ApplicationCreateRequest(BaseModel):
    job_id: int


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus


class EmailSentUpdateRequest(BaseModel):
    email_sent: bool


class NotesUpdateRequest(BaseModel):
    notes: str = ""


class ContactUpdateRequest(BaseModel):
    contact_name: str = ""
    contact_email: str = ""


class AIRequest(CamelModel):
    action: str = ""
    job: JobDescriptor | None = None
    contact: Contact | None = None
    resume_text: str = ""
    email_type: EmailType = "cold"


class SendEmailRequest(CamelModel):
    to: str = ""
    cc: str | None = None
    subject: str = ""
    body: str = ""
    application_id: int | None = None
