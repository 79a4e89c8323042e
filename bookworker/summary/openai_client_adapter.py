import httpx
import openai

from bookworker.summary.client_base import BaseSummaryClient
from bookworker.summary.exceptions import SummaryError, SummaryNetworkError


class OpenAIClientAdapter(BaseSummaryClient):
    """Summary client adapter built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    async def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        messages = [{"role": "user", "content": user_prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        try:
            response = await self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                messages=messages,
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise SummaryNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise SummaryNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise SummaryError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise SummaryError("AI returned empty response")
        return content
