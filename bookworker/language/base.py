from abc import ABC, abstractmethod


class BaseLanguageIdentifier(ABC):
    """Contract for statistical language identification adapters."""

    @abstractmethod
    def identify(self, text: str) -> str | None:
        """Identify the language of a text sample.

        Returns:
            ISO 639-3 code, or None when the sample is inconclusive.
            Never raises.
        """
