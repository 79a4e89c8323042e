import httpx

from bookworker.translation.base import BaseTranslationAdapter
from bookworker.translation.exceptions import (
    TranslationError,
    TranslationNetworkError,
    TranslationRateLimitedError,
)

_RATE_LIMIT_STATUSES = frozenset({429, 456})


class DeepLAdapter(BaseTranslationAdapter):
    """Adapter for the DeepL REST API (free or pro endpoint)."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: int,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def translate(
        self,
        text: str,
        target_language: str,
        api_key: str | None = None,
    ) -> str:
        key = api_key or self._api_key
        if not key:
            raise TranslationError("DeepL requires an API key")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._base_url,
                    headers={"Authorization": f"DeepL-Auth-Key {key}"},
                    data={
                        "text": text,
                        "target_lang": target_language.upper(),
                        "preserve_formatting": "1",
                    },
                )
        except httpx.TimeoutException as exc:
            raise TranslationNetworkError(f"DeepL timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TranslationNetworkError(f"DeepL network error: {exc}") from exc

        if response.status_code in _RATE_LIMIT_STATUSES:
            raise TranslationRateLimitedError(
                f"DeepL quota exceeded (HTTP {response.status_code})"
            )
        if response.status_code != 200:
            raise TranslationError(f"DeepL returned HTTP {response.status_code}")

        try:
            translations = response.json()["translations"]
            return "".join(item["text"] for item in translations)
        except (ValueError, TypeError, KeyError) as exc:
            raise TranslationError(f"Unexpected DeepL response: {exc}") from exc
