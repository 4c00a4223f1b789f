from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

DEFAULT_MODEL = "gpt-5-mini"


@dataclass
class ChatResult:
    id: str
    completion: str
    latency_ms: int
    model: str = DEFAULT_MODEL
    usage: dict[str, Any] = field(default_factory=dict)


class ProviderError(RuntimeError):
    """Non-2xx reply from the provider; keeps the status and raw body."""

    def __init__(self, status: int, reason: str, body: str) -> None:
        super().__init__(f"Provider returned {status} {reason}. Body: {body[:500]}")
        self.status = status
        self.reason = reason
        self.body = body

    def details(self) -> dict[str, Any]:
        return {"status": self.status, "statusText": self.reason, "body": self.body}


class ProviderNotConfigured(RuntimeError):
    pass


class InsightProvider(ABC):
    name = "provider"

    @abstractmethod
    def chat(self, messages: list[dict[str, str]], reasoning_effort: str | None = None) -> ChatResult:
        pass
