import httpx
import openai

from bookworker.translation.base import BaseTranslationAdapter
from bookworker.translation.exceptions import (
    TranslationError,
    TranslationNetworkError,
    TranslationRateLimitedError,
)

_SYSTEM_PROMPT = (
    "You are a literary translator. Translate the user's text into the language "
    "with ISO 639-1 code '{target_language}'. Keep every line separator exactly "
    "as it appears, including lines consisting only of '---'. Reply with the "
    "translation only."
)


class OpenAITranslationAdapter(BaseTranslationAdapter):
    """Translation adapter built on the OpenAI chat completions API."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._base_url = base_url
        self._client = self._build_client(api_key)

    def _build_client(self, api_key: str) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=api_key,
            timeout=self._timeout_seconds,
            base_url=self._base_url,
        )

    async def translate(
        self,
        text: str,
        target_language: str,
        api_key: str | None = None,
    ) -> str:
        if api_key and api_key != self._api_key:
            # A per-call key gets its own client, closed once the call is done.
            async with self._build_client(api_key) as client:
                return await self._complete(client, text, target_language)
        return await self._complete(self._client, text, target_language)

    async def _complete(
        self,
        client: openai.AsyncOpenAI,
        text: str,
        target_language: str,
    ) -> str:
        try:
            response = await client.chat.completions.create(
                model=self._model,
                temperature=0.0,
                messages=[
                    {
                        "role": "system",
                        "content": _SYSTEM_PROMPT.format(target_language=target_language),
                    },
                    {"role": "user", "content": text},
                ],
            )
        except openai.RateLimitError as exc:
            raise TranslationRateLimitedError(f"OpenAI rate limit: {exc}") from exc
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise TranslationNetworkError(f"OpenAI timed out: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise TranslationNetworkError(f"OpenAI network error: {exc}") from exc
        except openai.APIError as exc:
            raise TranslationError(f"OpenAI API error: {exc}") from exc

        if not response.choices:
            raise TranslationError("OpenAI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise TranslationError("OpenAI returned empty response")
        return content
