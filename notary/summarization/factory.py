from typing import ClassVar

from notary.config.settings import Settings
from notary.summarization.base import BaseSummarizer
from notary.summarization.openai_client_adapter import OpenAIClientAdapter
from notary.summarization.summarizer import NullSummarizer, Summarizer


class SummarizerFactory:
    """Creates the configured summarizer adapter."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseSummarizer:
        """Create a summarizer from settings; no API key means no summaries."""
        provider = settings.summarization_provider.lower()
        if provider == "none":
            return NullSummarizer()
        base_url = cls._resolve_base_url(provider, settings)
        if not settings.summarization_api_key and provider != "ollama":
            return NullSummarizer()
        client = OpenAIClientAdapter(
            api_key=settings.summarization_api_key or "ollama",
            timeout_seconds=settings.summarization_timeout_seconds,
            base_url=base_url,
        )
        return Summarizer(
            client=client,
            model=settings.summarization_model_name,
            input_chars=settings.summary_input_chars,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.summarization_base_url.strip()
            if not url:
                raise ValueError(
                    "summarization_base_url is required for "
                    "summarization_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "none",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown summarization provider '{provider}'. Choose from: {supported}"
        )
