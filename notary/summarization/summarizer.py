"""AI-powered document summarizer."""

from pathlib import Path

from notary.logging.logger import Log
from notary.summarization.base import BaseSummarizer
from notary.summarization.client_base import BaseSummarizationClient
from notary.summarization.prompt_loader import load_prompt_template


class Summarizer(BaseSummarizer):
    """Summarizes document text with a chat completion provider."""

    def __init__(
        self,
        *,
        client: BaseSummarizationClient,
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 220,
        input_chars: int = 6000,
        prompt_template_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._input_chars = input_chars
        self._prompt_template = load_prompt_template(prompt_template_path)

    def summarize(self, text: str) -> str:
        if not text.strip():
            return ""
        prompt = self._prompt_template.format(document_text=text[: self._input_chars])
        summary = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            user_prompt=prompt,
        )
        Log.debug(f"Summary produced: {len(summary)} chars")
        return summary


class NullSummarizer(BaseSummarizer):
    """Summarizer used when no AI provider is configured. Always returns ""."""

    def summarize(self, text: str) -> str:
        _ = text
        return ""
