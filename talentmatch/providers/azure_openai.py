"""Azure OpenAI chat completions over plain HTTP.

Single-shot: failures are reported to the caller, never retried.
"""
from __future__ import annotations

import time
from typing import Any

import requests

from talentmatch.config import AzureSettings
from talentmatch.log import get_logger
from talentmatch.providers.base import (
    DEFAULT_MODEL,
    ChatResult,
    InsightProvider,
    ProviderError,
    ProviderNotConfigured,
)

log = get_logger(__name__)


def extract_content(content: Any) -> str:
    """Message content may be a string or a list of ``{"type", "text"}`` parts."""
    if not content:
        return ""
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        return "".join(
            part["text"] for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ).strip()
    return ""


class AzureOpenAIProvider(InsightProvider):
    name = "azure-openai"

    def __init__(self, settings: AzureSettings) -> None:
        if not settings.configured:
            raise ProviderNotConfigured(
                "Azure OpenAI not configured: set endpoint, deployment and api key"
            )
        self.settings = settings

    @property
    def url(self) -> str:
        endpoint = self.settings.endpoint.rstrip("/")
        return (
            f"{endpoint}/openai/deployments/{self.settings.deployment}"
            f"/chat/completions?api-version={self.settings.api_version}"
        )

    def chat(self, messages: list[dict[str, str]], reasoning_effort: str | None = None) -> ChatResult:
        body = {
            "messages": messages,
            "reasoning_effort": reasoning_effort or self.settings.reasoning_effort,
        }
        log.debug("Azure OpenAI request → %s (%d messages)", self.url, len(messages))

        started = time.monotonic()
        r = requests.post(
            self.url,
            json=body,
            headers={"api-key": self.settings.api_key},
            timeout=self.settings.timeout,
        )
        latency_ms = int((time.monotonic() - started) * 1000)
        log.info("Azure OpenAI response: %s %s in %d ms", r.status_code, r.reason, latency_ms)

        if not r.ok:
            raise ProviderError(r.status_code, r.reason or "", r.text)

        try:
            data = r.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            # Raw body becomes the completion so callers keep it for diagnostics
            log.warning("Azure OpenAI returned %s with a non-JSON body", r.status_code)
            return ChatResult(id="", completion=r.text or "", latency_ms=latency_ms)

        choices = data.get("choices")
        first = choices[0] if isinstance(choices, list) and choices and isinstance(choices[0], dict) else {}
        message = first.get("message")
        completion = extract_content(message.get("content") if isinstance(message, dict) else None)
        if not completion:
            log.debug("Azure choice without content: %s", first)

        return ChatResult(
            id=data.get("id", ""),
            completion=completion,
            latency_ms=latency_ms,
            model=data.get("model") or DEFAULT_MODEL,
            usage=data.get("usage") or {},
        )
