import httpx

from bookworker.translation.base import BaseTranslationAdapter
from bookworker.translation.exceptions import (
    TranslationError,
    TranslationNetworkError,
    TranslationRateLimitedError,
)


class GoogleTranslateAdapter(BaseTranslationAdapter):
    """Keyless adapter for the public Google Translate endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def translate(
        self,
        text: str,
        target_language: str,
        api_key: str | None = None,
    ) -> str:
        if not text.strip():
            return text
        params = {"client": "gtx", "sl": "auto", "tl": target_language, "dt": "t"}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._base_url,
                    params=params,
                    data={"q": text},
                )
        except httpx.TimeoutException as exc:
            raise TranslationNetworkError(f"Google Translate timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TranslationNetworkError(f"Google Translate network error: {exc}") from exc

        if response.status_code == 429:
            raise TranslationRateLimitedError("Google Translate rate limit reached")
        if response.status_code != 200:
            raise TranslationError(
                f"Google Translate returned HTTP {response.status_code}"
            )
        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> str:
        try:
            segments = response.json()[0]
            return "".join(segment[0] for segment in segments if segment and segment[0])
        except (ValueError, TypeError, IndexError, KeyError) as exc:
            raise TranslationError(f"Unexpected Google Translate response: {exc}") from exc
