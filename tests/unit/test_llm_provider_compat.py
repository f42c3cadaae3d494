from __future__ import annotations

from types import SimpleNamespace

import pytest

from applyflow.llm.providers import LLMProvider, ProviderConfig, parse_json


class DummyAPIError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FakeResponsePayload:
    def __init__(self, *, output_text: str = "", raw: dict | None = None):
        self.output_text = output_text
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeChatPayload:
    def __init__(self, *, content: str, raw: dict | None = None):
        self.choices = [SimpleNamespace(message=SimpleNamespace(content=content))]
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeEndpoint:
    def __init__(self, fn):
        self._fn = fn

    def create(self, **kwargs):
        return self._fn(**kwargs)


class FakeClient:
    def __init__(self, *, responses_fn, chat_fn):
        self.responses = FakeEndpoint(responses_fn)
        self.chat = SimpleNamespace(completions=FakeEndpoint(chat_fn))


def _provider(fake_client: FakeClient) -> LLMProvider:
    provider = LLMProvider(
        ProviderConfig(name="openai", base_url="http://localhost:9999/v1", api_key="dummy", timeout_sec=5)
    )
    provider.client = fake_client
    return provider


def test_responses_path_receives_sampling_options() -> None:
    seen: dict = {}

    def responses_fn(**kwargs):
        seen.update(kwargs)
        return FakeResponsePayload(output_text='{"ok": true}')

    def chat_fn(**kwargs):
        raise AssertionError("chat path should not be used")

    provider = _provider(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    result = provider.complete_text(model="gpt-4o-mini", prompt="ping", temperature=0.3, max_tokens=500)

    assert result.raw["api_path"] == "responses"
    assert seen["temperature"] == 0.3
    assert seen["max_output_tokens"] == 500


def test_falls_back_to_chat_when_responses_is_missing() -> None:
    seen: dict = {}

    def responses_fn(**kwargs):
        raise DummyAPIError("Not found", status_code=404)

    def chat_fn(**kwargs):
        seen.update(kwargs)
        return FakeChatPayload(content="CHAT_OK")

    provider = _provider(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    result = provider.complete_text(model="llama3", prompt="ping", max_tokens=800)

    assert result.content == "CHAT_OK"
    assert result.raw["api_path"] == "chat_completions"
    assert seen["max_tokens"] == 800


def test_other_errors_are_not_swallowed() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("rate limited", status_code=429)

    def chat_fn(**kwargs):
        raise AssertionError("chat path should not be used")

    provider = _provider(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    with pytest.raises(DummyAPIError, match="rate limited"):
        provider.complete_text(model="gpt-4o-mini", prompt="ping")


def test_complete_json_strips_code_fences() -> None:
    def responses_fn(**kwargs):
        return FakeResponsePayload(output_text='```json\n{"subject": "Hi", "body": "Hello"}\n```')

    provider = _provider(FakeClient(responses_fn=responses_fn, chat_fn=lambda **kwargs: None))

    assert provider.complete_json(model="gpt-4o-mini", prompt="json please") == {"subject": "Hi", "body": "Hello"}


def test_parse_json_recovers_embedded_object() -> None:
    assert parse_json('Sure! Here you go: {"overallScore": 72} Thanks') == {"overallScore": 72}


def test_parse_json_returns_empty_dict_for_garbage() -> None:
    assert parse_json("I cannot help with that") == {}
    assert parse_json("") == {}
    assert parse_json("[1, 2, 3]") == {}
