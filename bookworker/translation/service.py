"""Engine-agnostic translation entry point used by the pipeline."""

from lxml import etree

from bookworker.logging.logger import Log
from bookworker.profile.models import TranslationEngine
from bookworker.translation.base import BaseTranslationAdapter
from bookworker.translation.exceptions import TranslationError
from bookworker.translation.text_nodes import collect_text_slots

SEGMENT_SEPARATOR = "\n---\n"


class TranslationService:
    def __init__(
        self,
        adapters: dict[TranslationEngine, BaseTranslationAdapter],
        default_target_language: str = "es",
    ) -> None:
        self._adapters = adapters
        self.default_target_language = default_target_language

    async def translate_text(
        self,
        text: str,
        target_language: str,
        engine: TranslationEngine,
        api_key: str | None = None,
    ) -> str:
        adapter = self._adapters.get(engine)
        if adapter is None:
            raise TranslationError(f"No adapter configured for engine '{engine.value}'")
        return await adapter.translate(text, target_language, api_key=api_key)

    async def translate_document(
        self,
        root: etree._Element,
        engine: TranslationEngine,
        target_language: str | None = None,
        api_key: str | None = None,
    ) -> bool:
        """Translate every non-blank body text node of a parsed document.

        All nodes go out in one call joined by a separator line. The result
        is applied only when it splits back into the same number of parts;
        otherwise the document is left untouched and False is returned.
        """
        slots = collect_text_slots(root)
        if not slots:
            return False

        originals = [slot.value for slot in slots]
        translated = await self.translate_text(
            SEGMENT_SEPARATOR.join(originals),
            target_language or self.default_target_language,
            engine,
            api_key=api_key,
        )
        parts = translated.split(SEGMENT_SEPARATOR)
        if len(parts) != len(originals):
            Log.warning(
                f"Translation segment mismatch: sent {len(originals)}, "
                f"received {len(parts)}; document left untranslated"
            )
            return False

        for slot, part in zip(slots, parts):
            slot.value = part
        return True
