from unittest.mock import patch

import pytest

from notary.config.settings import Settings
from notary.summarization.factory import SummarizerFactory
from notary.summarization.summarizer import NullSummarizer, Summarizer


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {"summarization_provider": "openai", "summarization_api_key": "k"}
    values.update(overrides)
    return Settings(**values)


class TestSummarizerFactory:
    def test_none_provider_disables_summaries(self) -> None:
        assert isinstance(SummarizerFactory.create(_settings(summarization_provider="none")), NullSummarizer)

    def test_missing_api_key_disables_summaries(self) -> None:
        assert isinstance(SummarizerFactory.create(_settings(summarization_api_key="")), NullSummarizer)

    def test_openai_provider(self) -> None:
        with patch("notary.summarization.factory.OpenAIClientAdapter") as adapter_cls:
            summarizer = SummarizerFactory.create(_settings())
        assert isinstance(summarizer, Summarizer)
        assert adapter_cls.call_args.kwargs["base_url"] is None

    def test_known_compatible_provider_uses_default_url(self) -> None:
        with patch("notary.summarization.factory.OpenAIClientAdapter") as adapter_cls:
            SummarizerFactory.create(_settings(summarization_provider="groq"))
        assert adapter_cls.call_args.kwargs["base_url"] == "https://api.groq.com/openai/v1"

    def test_ollama_needs_no_key(self) -> None:
        with patch("notary.summarization.factory.OpenAIClientAdapter") as adapter_cls:
            summarizer = SummarizerFactory.create(
                _settings(summarization_provider="ollama", summarization_api_key="")
            )
        assert isinstance(summarizer, Summarizer)
        assert adapter_cls.call_args.kwargs["api_key"] == "ollama"

    def test_openai_compatible_requires_base_url(self) -> None:
        with pytest.raises(ValueError, match="summarization_base_url is required"):
            SummarizerFactory.create(_settings(summarization_provider="openai_compatible"))

    def test_openai_compatible_with_base_url(self) -> None:
        with patch("notary.summarization.factory.OpenAIClientAdapter") as adapter_cls:
            SummarizerFactory.create(
                _settings(
                    summarization_provider="openai_compatible",
                    summarization_base_url=" http://llm.local/v1 ",
                )
            )
        assert adapter_cls.call_args.kwargs["base_url"] == "http://llm.local/v1"

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown summarization provider"):
            SummarizerFactory.create(_settings(summarization_provider="mystery"))
