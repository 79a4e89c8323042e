from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException

from bookworker.language.base import BaseLanguageIdentifier
from bookworker.language.codes import to_iso639_3
from bookworker.logging.logger import Log


class LangdetectIdentifier(BaseLanguageIdentifier):
    """Identifies languages with langdetect (seeded for repeatable results)."""

    def __init__(self, seed: int = 0) -> None:
        DetectorFactory.seed = seed

    def identify(self, text: str) -> str | None:
        if not text.strip():
            return None
        try:
            code = detect(text)
        except LangDetectException as exc:
            Log.debug(f"Language detection inconclusive: {exc}")
            return None
        return to_iso639_3(code)
