from typing import ClassVar

from bookworker.config.settings import Settings
from bookworker.summary.base import BaseSummarizer
from bookworker.summary.example_client_adapter import ExampleClientAdapter
from bookworker.summary.openai_client_adapter import OpenAIClientAdapter
from bookworker.summary.summarizer import Summarizer


class SummarizerFactory:
    """Creates the configured summarizer adapter."""

    SUPPORTED_PROVIDERS: ClassVar[tuple[str, ...]] = ("example", "openai")

    @classmethod
    def create(cls, settings: Settings) -> BaseSummarizer:
        """Create a configured summarizer from application settings."""
        provider = settings.summary_provider.lower()
        if provider == "example":
            return Summarizer(
                client=ExampleClientAdapter(),
                model="example",
                language=settings.target_language,
            )
        if provider == "openai":
            client = OpenAIClientAdapter(
                api_key=settings.openai_api_key,
                timeout_seconds=settings.openai_timeout_seconds,
            )
            return Summarizer(
                client=client,
                model=settings.openai_model_name,
                language=settings.target_language,
            )
        raise ValueError(
            f"Unknown summary provider '{provider}'. "
            f"Choose from: {list(cls.SUPPORTED_PROVIDERS)}"
        )
