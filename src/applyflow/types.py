from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ExperienceLevel = Literal["Entry-level", "Mid-level", "Senior", "Lead / Manager", "Executive"]
ApplicationStatus = Literal["Applied", "Pending", "Shortlisted", "Interviewing", "Offered", "Rejected"]
EmailType = Literal["cold", "follow_up"]

APPLICATION_STATUSES: tuple[str, ...] = (
    "Applied",
    "Pending",
    "Shortlisted",
    "Interviewing",
    "Offered",
    "Rejected",
)


def split_terms(value: str) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobPreferences(CamelModel):
    roles: str = ""
    keywords: str = ""
    location: str = ""
    experience_level: ExperienceLevel = "Mid-level"
    tech_stack: str = ""

    @field_validator("roles", "keywords", "location", "tech_stack", mode="before")
    @classmethod
    def join_lists(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item).strip() for item in value if str(item).strip())
        return value

    @property
    def role_list(self) -> list[str]:
        return split_terms(self.roles)

    @property
    def keyword_list(self) -> list[str]:
        return split_terms(self.keywords)

    @property
    def tech_stack_list(self) -> list[str]:
        return split_terms(self.tech_stack)


class JobPosting(BaseModel):
    title: str
    company: str
    location: str = ""
    apply_url: str
    posted_at: datetime
    description_snippet: str = ""
    source: str = ""
    match_score: int = Field(default=50, ge=0, le=100)


class DiscoveryResult(CamelModel):
    inserted_count: int = 0
    total_candidates: int = 0


class JobDescriptor(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    description_snippet: str = ""
    email_sent_at: str | None = None

    @property
    def summary(self) -> str:
        return self.description_snippet or self.description


class Contact(CamelModel):
    name: str = ""
    title: str = ""
    email: str = ""
    email_pattern: str = ""
    confidence_score: int = 0
    linkedin_url: str = ""


class ContactSuggestions(CamelModel):
    contacts: list[Contact] = Field(default_factory=list)


class EmailDraft(CamelModel):
    subject: str
    body: str
    contact_email: str = ""


class ResumeScore(CamelModel):
    overall_score: int = 0
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    recommendation: str = ""


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)
