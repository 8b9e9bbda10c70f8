from dataclasses import dataclass, field

from notary.extraction.fields import ExtractedFields, extract_fields
from notary.extraction.text import TextExtractor
from notary.logging.logger import Log
from notary.summarization.base import BaseSummarizer


@dataclass(frozen=True)
class ProcessedContent:
    """Best-effort view of a document; any part may be empty."""

    text: str = ""
    fields: ExtractedFields = field(default_factory=ExtractedFields)
    summary: str = ""


class ContentProcessor:
    """Runs extract text -> extract fields -> summarize, degrading instead of failing.

    A failing step leaves its part of ProcessedContent empty and the remaining
    steps still run on whatever is available.
    """

    def __init__(self, text_extractor: TextExtractor, summarizer: BaseSummarizer) -> None:
        self._text_extractor = text_extractor
        self._summarizer = summarizer

    def process(self, data: bytes, filename: str) -> ProcessedContent:
        text = self._extract_text(data, filename)
        fields = self._extract_fields(text)
        summary = self._summarize(text)
        return ProcessedContent(text=text, fields=fields, summary=summary)

    def _extract_text(self, data: bytes, filename: str) -> str:
        try:
            text = self._text_extractor.extract(data, filename)
        except Exception as exc:  # noqa: BLE001
            Log.warning(f"Text extraction failed, continuing without text: {exc}", filename=filename)
            return ""
        Log.info(f"Extracted {len(text)} chars", filename=filename)
        return text

    @staticmethod
    def _extract_fields(text: str) -> ExtractedFields:
        try:
            return extract_fields(text)
        except Exception as exc:  # noqa: BLE001
            Log.warning(f"Field extraction failed: {exc}")
            return ExtractedFields()

    def _summarize(self, text: str) -> str:
        try:
            return self._summarizer.summarize(text)
        except Exception as exc:  # noqa: BLE001
            Log.warning(f"Summarization failed, continuing without summary: {exc}")
            return ""
