from __future__ import annotations

from ...core.config import Settings, get_settings
from ...core.errors import LLMConfigurationError
from .providers.google import GoogleProvider
from .providers.openai import OpenAIProvider
from .types import LLMProvider

SUPPORTED_PROVIDERS = ("openai", "google")


def get_llm_client(settings: Settings | None = None) -> LLMProvider:
    """
    Build the provider selected by LLM_PROVIDER (default: openai).

    Raises:
        LLMConfigurationError: the credential for the selected provider is
            missing, or the selector names an unknown provider. Nothing is
            sent over the network before these checks pass.
    """
    settings = settings or get_settings()
    provider = (settings.llm_provider or "openai").strip().lower()

    if provider == "openai":
        if not settings.openai_api_key:
            raise LLMConfigurationError(
                "OPENAI_API_KEY environment variable is required when using OpenAI provider"
            )
        return OpenAIProvider(
            settings.openai_api_key,
            settings.openai_model,
            timeout=settings.generation_timeout_seconds,
        )

    if provider == "google":
        if not settings.gemini_api_key:
            raise LLMConfigurationError(
                "GEMINI_API_KEY environment variable is required when using Google provider"
            )
        return GoogleProvider(
            settings.gemini_api_key,
            settings.gemini_model,
            timeout=settings.generation_timeout_seconds,
        )

    raise LLMConfigurationError(
        f"Unsupported LLM provider: {provider}. Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
    )
