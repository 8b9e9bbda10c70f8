from abc import ABC, abstractmethod


class BaseSummarizer(ABC):
    """Contract for all summarization adapters."""

    @abstractmethod
    def summarize(self, text: str) -> str:
        """Summarize extracted document text.

        Returns:
            A short summary, or "" when there is nothing to summarize.

        Raises:
            SummarizationError: on any failure.
        """
