from typing import ClassVar

from greenintellect.analysis.chat_completion_client import (
    ChatCompletionClient,
    is_transient_status,
)
from greenintellect.analysis.client_base import BaseAnalysisClient
from greenintellect.analysis.example_client_adapter import ExampleAnalysisClient
from greenintellect.analysis.retry import ResilientRequestExecutor
from greenintellect.config.settings import Settings


class AnalysisClientFactory:
    """Creates the configured analysis client."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "groq": "https://api.groq.com/openai/v1",
        "openai": "https://api.openai.com/v1",
        "openrouter": "https://openrouter.ai/api/v1",
        "together": "https://api.together.xyz/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseAnalysisClient:
        """Create an analysis client from application settings."""
        provider = settings.analysis_provider.lower()
        if provider == "example":
            return ExampleAnalysisClient()
        return ChatCompletionClient(
            api_key=settings.analysis_api_key,
            base_url=cls._resolve_base_url(provider, settings),
            model=settings.analysis_model_name,
            temperature=settings.analysis_temperature,
            max_tokens=settings.analysis_max_tokens,
            timeout_seconds=settings.analysis_timeout_seconds,
            executor=ResilientRequestExecutor(
                settings.analysis_max_retries,
                should_retry_status=is_transient_status,
            ),
            min_interval_seconds=settings.analysis_min_interval_seconds,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str:
        if provider == "openai_compatible":
            url = (settings.analysis_base_url or "").strip()
            if not url:
                raise ValueError(
                    "analysis_base_url is required for analysis_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = ["example", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]
        raise ValueError(f"Unknown analysis provider '{provider}'. Choose from: {supported}")
