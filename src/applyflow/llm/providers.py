from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from applyflow.config import Settings
from applyflow.types import ModelResponse

logger = logging.getLogger(__name__)

RESPONSES_PATH = "responses"
CHAT_PATH = "chat_completions"


class UpstreamError(Exception):
    """Raised when no language model provider produced a response."""


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int


class LLMProvider:
    """OpenAI-compatible endpoint.

    The Responses API is tried first; servers that only speak chat completions
    (Ollama, vLLM, older proxies) answer it with a 404 and get the chat call.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
            max_retries=1,
        )

    def complete_text(
        self,
        *,
        model: str,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ModelResponse:
        try:
            response = self.client.responses.create(
                model=model,
                input=[{"role": "user", "content": [{"type": "input_text", "text": prompt}]}],
                **_sampling(temperature, max_tokens, tokens_key="max_output_tokens"),
            )
        except Exception as exc:
            if not _endpoint_missing(exc):
                raise
            logger.warning(
                "Responses API unavailable for provider=%s base_url=%s, using chat.completions (%s)",
                self.config.name,
                self.config.base_url,
                exc,
            )
        else:
            return _model_response(getattr(response, "output_text", "") or "", response, RESPONSES_PATH)

        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            **_sampling(temperature, max_tokens, tokens_key="max_tokens"),
        )
        return _model_response(_chat_text(response), response, CHAT_PATH)

    def complete_json(
        self,
        *,
        model: str,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        result = self.complete_text(model=model, prompt=prompt, temperature=temperature, max_tokens=max_tokens)
        return parse_json(result.content)


def _sampling(temperature: float | None, max_tokens: int | None, *, tokens_key: str) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if temperature is not None:
        options["temperature"] = temperature
    if max_tokens is not None:
        options[tokens_key] = max_tokens
    return options


def _model_response(text: str, response: Any, api_path: str) -> ModelResponse:
    dump = getattr(response, "model_dump", None)
    raw = dump() if callable(dump) else {}
    if not isinstance(raw, dict):
        raw = {"raw": raw}
    raw["api_path"] = api_path
    return ModelResponse(content=text, raw=raw)


def _chat_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)


def _endpoint_missing(exc: Exception) -> bool:
    if getattr(exc, "status_code", None) == 404:
        return True
    message = str(exc).lower()
    return "not found" in message or "404" in message


def strip_code_fences(content: str) -> str:
    candidate = content.strip()
    if "```" not in candidate:
        return candidate

    for part in candidate.split("```"):
        part = part.strip()
        if part.lower().startswith("json"):
            part = part[4:].strip()
        if part.startswith("{") and part.endswith("}"):
            return part
    return candidate.replace("```json", "").replace("```", "").strip()


def parse_json(content: str) -> dict[str, Any]:
    candidate = strip_code_fences(content or "")
    if not candidate:
        return {}

    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        start, end = candidate.find("{"), candidate.rfind("}")
        if start == -1 or end <= start:
            logger.warning("Failed to parse JSON model output")
            return {}
        try:
            value = json.loads(candidate[start : end + 1])
        except json.JSONDecodeError:
            logger.warning("Failed to parse JSON model output")
            return {}
    return value if isinstance(value, dict) else {}


class ProviderPool:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._openai: LLMProvider | None = None
        self._local: LLMProvider | None = None

    def openai(self) -> LLMProvider:
        if self._openai is None:
            self._openai = LLMProvider(
                ProviderConfig(
                    name="openai",
                    base_url=self.settings.openai_base_url,
                    api_key=self.settings.openai_api_key,
                    timeout_sec=self.settings.openai_timeout_sec,
                )
            )
        return self._openai

    def local(self) -> LLMProvider:
        if self._local is None:
            self._local = LLMProvider(
                ProviderConfig(
                    name="local",
                    base_url=self.settings.local_llm_base_url,
                    api_key=self.settings.local_llm_api_key,
                    timeout_sec=self.settings.local_llm_timeout_sec,
                )
            )
        return self._local

    def available(self) -> list[tuple[LLMProvider, str]]:
        providers: list[tuple[LLMProvider, str]] = []
        if self.settings.openai_api_key:
            providers.append((self.openai(), self.settings.openai_model))
        if self.settings.local_llm_enabled:
            providers.append((self.local(), self.settings.local_llm_model))
        return providers
