from abc import ABC, abstractmethod


class BaseSummarizationClient(ABC):
    """Contract for provider-specific chat completion clients."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        user_prompt: str,
    ) -> str:
        """Return provider response as plain text."""
