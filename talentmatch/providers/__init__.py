from .base import ChatResult, InsightProvider, ProviderError, ProviderNotConfigured
from .azure_openai import AzureOpenAIProvider

from talentmatch.config import AzureSettings, get_azure_settings
from talentmatch.log import get_logger

log = get_logger(__name__)

__all__ = [
    "ChatResult", "InsightProvider", "ProviderError", "ProviderNotConfigured",
    "AzureOpenAIProvider", "get_provider", "ping", "diagnose",
]


def get_provider(settings: AzureSettings | None = None) -> InsightProvider | None:
    """Configured provider, or None when credentials are incomplete."""
    settings = settings or get_azure_settings()
    if not settings.configured:
        log.info("Azure OpenAI not configured; insights will use local heuristics")
        return None
    log.info("Registered provider: Azure OpenAI (%s)", settings.deployment)
    return AzureOpenAIProvider(settings)


def ping(provider: InsightProvider, prompt: str = "Reply 'OK'.") -> ChatResult:
    return provider.chat(
        [
            {"role": "system", "content": "You are a quick diagnostic. Summarize in at most 15 words."},
            {"role": "user", "content": prompt},
        ],
        reasoning_effort="medium",
    )


def diagnose(provider: InsightProvider | None) -> dict:
    """Connectivity check that reports instead of raising."""
    if provider is None:
        return {"connected": False, "error": "Azure OpenAI not configured"}
    try:
        result = provider.chat(
            [
                {"role": "system", "content": "Reply only OK if you understand."},
                {"role": "user", "content": "Confirm receipt of this message by replying only OK."},
            ],
            reasoning_effort="minimal",
        )
    except Exception as exc:
        log.error("Provider diagnostic failed: %s", exc)
        details = exc.details() if isinstance(exc, ProviderError) else None
        return {"connected": False, "error": str(exc), "details": details}
    return {
        "connected": True,
        "model": result.model,
        "latencyMs": result.latency_ms,
        "sample": result.completion,
    }
