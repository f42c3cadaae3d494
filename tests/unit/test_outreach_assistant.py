from __future__ import annotations

from types import SimpleNamespace

import pytest

from applyflow.config import Settings
from applyflow.llm.assistant import DEFAULT_EMAIL_BODY, OutreachAssistant
from applyflow.llm.providers import UpstreamError
from applyflow.types import Contact, JobDescriptor


class FakeProvider:
    def __init__(self, name: str, result):
        self.config = SimpleNamespace(name=name)
        self.result = result
        self.prompts: list[str] = []

    def complete_json(self, *, model: str, prompt: str, temperature: float, max_tokens: int) -> dict:
        self.prompts.append(prompt)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakePool:
    def __init__(self, *providers: FakeProvider):
        self.providers = providers

    def available(self):
        return [(provider, "test-model") for provider in self.providers]


def _assistant(*providers: FakeProvider) -> OutreachAssistant:
    return OutreachAssistant(settings=Settings(), pool=FakePool(*providers))


JOB = JobDescriptor(title="Data Engineer", company="Globex", description="Spark pipelines")


def test_contacts_are_parsed_from_camel_case_output() -> None:
    provider = FakeProvider(
        "openai",
        {"contacts": [{"name": "Ada", "title": "Recruiter", "emailPattern": "first@globex.com", "confidenceScore": 80}]},
    )

    result = _assistant(provider).find_contacts(JOB)

    assert result.contacts[0].email_pattern == "first@globex.com"
    assert result.contacts[0].confidence_score == 80
    assert "Globex" in provider.prompts[0]


def test_unparseable_contacts_fall_back_to_empty_list() -> None:
    result = _assistant(FakeProvider("openai", {})).find_contacts(JOB)

    assert result.contacts == []


def test_email_default_is_used_when_output_is_invalid() -> None:
    contact = Contact(name="Ada", email="ada@globex.com")

    draft = _assistant(FakeProvider("openai", {"unexpected": True})).generate_email(JOB, contact=contact)

    assert draft.subject == "Application: Data Engineer at Globex"
    assert draft.body == DEFAULT_EMAIL_BODY
    assert draft.contact_email == "ada@globex.com"


def test_email_keeps_contact_address_when_model_omits_it() -> None:
    contact = Contact(name="Ada", email="ada@globex.com")
    provider = FakeProvider("openai", {"subject": "Spark pipelines at Globex", "body": "Hello Ada"})

    draft = _assistant(provider).generate_email(JOB, contact=contact, resume_text="5 years of Spark")

    assert draft.subject == "Spark pipelines at Globex"
    assert draft.contact_email == "ada@globex.com"
    assert "5 years of Spark" in provider.prompts[0]


def test_follow_up_uses_follow_up_prompt() -> None:
    provider = FakeProvider("openai", {"subject": "Following up", "body": "Checking in"})
    job = JobDescriptor(title="Data Engineer", company="Globex", emailSentAt="2026-03-01")

    _assistant(provider).generate_email(job, email_type="follow_up")

    assert "2026-03-01" in provider.prompts[0]


def test_resume_score_is_clamped() -> None:
    provider = FakeProvider("openai", {"overallScore": 140, "matchedSkills": ["Spark"], "recommendation": "Apply"})

    score = _assistant(provider).score_resume(resume_text="Spark", job_description="Spark pipelines")

    assert score.overall_score == 100
    assert score.matched_skills == ["Spark"]


def test_resume_score_requires_both_inputs() -> None:
    with pytest.raises(ValueError):
        _assistant(FakeProvider("openai", {})).score_resume(resume_text="", job_description="x")


def test_next_provider_is_tried_after_failure() -> None:
    failing = FakeProvider("openai", RuntimeError("boom"))
    local = FakeProvider("local", {"contacts": [{"name": "Grace"}]})

    result = _assistant(failing, local).find_contacts(JOB)

    assert result.contacts[0].name == "Grace"


def test_all_providers_failing_raises_upstream_error() -> None:
    with pytest.raises(UpstreamError):
        _assistant(FakeProvider("openai", RuntimeError("boom"))).find_contacts(JOB)

    with pytest.raises(UpstreamError):
        _assistant().find_contacts(JOB)


def test_invalid_contacts_are_dropped_individually() -> None:
    provider = FakeProvider(
        "openai",
        {
            "contacts": [
                {"name": "Ada", "confidenceScore": "high"},
                "not a contact",
                {"name": "Grace", "title": "Engineering Manager", "confidenceScore": 60},
            ]
        },
    )

    result = _assistant(provider).find_contacts(JOB)

    assert [contact.name for contact in result.contacts] == ["Grace"]


def test_contacts_without_a_list_fall_back_to_empty() -> None:
    result = _assistant(FakeProvider("openai", {"contacts": "none found"})).find_contacts(JOB)

    assert result.contacts == []
