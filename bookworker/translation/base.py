from abc import ABC, abstractmethod


class BaseTranslationAdapter(ABC):
    """Contract for provider-specific text translation adapters."""

    @abstractmethod
    async def translate(
        self,
        text: str,
        target_language: str,
        api_key: str | None = None,
    ) -> str:
        """Translate text into the target language.

        Args:
            text: Plain text, possibly spanning several lines.
            target_language: ISO 639-1 code of the target language.
            api_key: Per-call key overriding the configured one.

        Raises:
            TranslationRateLimitedError: when the provider refuses for quota reasons.
            TranslationNetworkError: on connection failures and timeouts.
            TranslationError: on any other provider failure.
        """
