import httpx
import openai

from notary.summarization.client_base import BaseSummarizationClient
from notary.summarization.exceptions import SummarizationError, SummarizationNetworkError


class OpenAIClientAdapter(BaseSummarizationClient):
    """Summarization client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        user_prompt: str,
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise SummarizationNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise SummarizationNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise SummarizationError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise SummarizationError("AI returned empty response")
        return content.strip()
