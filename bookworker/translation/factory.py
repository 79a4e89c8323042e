from bookworker.config.settings import Settings
from bookworker.profile.models import TranslationEngine
from bookworker.translation.base import BaseTranslationAdapter
from bookworker.translation.deepl_adapter import DeepLAdapter
from bookworker.translation.google_adapter import GoogleTranslateAdapter
from bookworker.translation.openai_adapter import OpenAITranslationAdapter
from bookworker.translation.service import TranslationService


class TranslationServiceFactory:
    """Creates a TranslationService with one adapter per supported engine."""

    @classmethod
    def create(cls, settings: Settings) -> TranslationService:
        return TranslationService(
            adapters=cls._build_adapters(settings),
            default_target_language=settings.target_language,
        )

    @staticmethod
    def _build_adapters(
        settings: Settings,
    ) -> dict[TranslationEngine, BaseTranslationAdapter]:
        return {
            TranslationEngine.GOOGLE: GoogleTranslateAdapter(
                base_url=settings.google_translate_url,
                timeout_seconds=settings.translation_timeout_seconds,
            ),
            TranslationEngine.DEEPL: DeepLAdapter(
                api_key=settings.deepl_api_key,
                base_url=settings.deepl_api_url,
                timeout_seconds=settings.translation_timeout_seconds,
            ),
            TranslationEngine.OPENAI: OpenAITranslationAdapter(
                api_key=settings.openai_api_key,
                model=settings.openai_model_name,
                timeout_seconds=settings.openai_timeout_seconds,
            ),
        }
