"""Two-stage translation decision: package metadata, then content sampling."""

from bookworker.container.codec import EpubContainer
from bookworker.container.exceptions import ContainerError
from bookworker.container.metadata import read_metadata
from bookworker.language.base import BaseLanguageIdentifier
from bookworker.language.codes import to_iso639_3
from bookworker.language.models import TranslationDecision
from bookworker.logging.logger import Log
from bookworker.transforms.sampling import sample_book_text

SAMPLE_MAX_ENTRIES = 5
SAMPLE_MAX_CHARS = 5000


class LanguageClassifier:
    """Decides whether a book must be translated into the target language."""

    def __init__(
        self,
        identifier: BaseLanguageIdentifier,
        target_language: str = "es",
    ) -> None:
        self._identifier = identifier
        self._target = to_iso639_3(target_language) or target_language

    def decide(self, container: EpubContainer) -> TranslationDecision:
        declared = self._declared_language(container)
        if declared is not None and to_iso639_3(declared) == self._target:
            Log.info(f"Declared language '{declared}' matches target, no translation")
            return TranslationDecision(should_translate=False, detected_code=self._target)

        sample = sample_book_text(
            container,
            max_entries=SAMPLE_MAX_ENTRIES,
            max_chars=SAMPLE_MAX_CHARS,
        )
        if not sample:
            Log.info("No sample text available, defaulting to translate")
            return TranslationDecision(should_translate=True, detected_code=None)

        detected = self._identifier.identify(sample)
        Log.info(f"Detected language from {len(sample)} sampled chars: {detected}")
        return TranslationDecision(
            should_translate=detected != self._target,
            detected_code=detected,
        )

    @staticmethod
    def _declared_language(container: EpubContainer) -> str | None:
        try:
            return read_metadata(container).language
        except ContainerError as exc:
            Log.debug(f"Package metadata unavailable: {exc}")
            return None
