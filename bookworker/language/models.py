from dataclasses import dataclass


@dataclass(frozen=True)
class TranslationDecision:
    """Whether a book needs translation, and the language it was detected in."""

    should_translate: bool
    detected_code: str | None = None
