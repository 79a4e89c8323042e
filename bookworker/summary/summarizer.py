"""AI-powered book summarizer."""

import asyncio
from pathlib import Path

from bookworker.container.codec import EpubContainer
from bookworker.container.exceptions import ContainerError
from bookworker.logging.logger import Log
from bookworker.summary.base import BaseSummarizer
from bookworker.summary.client_base import BaseSummaryClient
from bookworker.summary.exceptions import SummaryError
from bookworker.summary.prompt_loader import load_prompt_template
from bookworker.transforms.sampling import sample_book_text

SAMPLE_MAX_ENTRIES = 10
SAMPLE_MAX_CHARS = 12000


class Summarizer(BaseSummarizer):
    """Summarizes the opening chapters of a book with a chat completion model."""

    def __init__(
        self,
        *,
        client: BaseSummaryClient,
        model: str,
        temperature: float = 0.3,
        language: str = "es",
        prompt_template_path: Path | None = None,
        system_prompt: str = "",
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._language = language
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)

    async def summarize(self, epub_bytes: bytes) -> str:
        text = await asyncio.to_thread(self._sample, epub_bytes)
        if not text:
            raise SummaryError("Book has no readable text to summarize")

        prompt = self._prompt_template.format(language=self._language, book_text=text)
        Log.debug(f"Summary prompt built from {len(text)} chars")

        raw_response = await self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
        )
        summary = raw_response.strip()
        if not summary:
            raise SummaryError("AI returned an empty summary")
        Log.info(f"Summary complete: {len(summary)} chars")
        return summary

    @staticmethod
    def _sample(epub_bytes: bytes) -> str:
        try:
            container = EpubContainer.open(epub_bytes)
        except ContainerError as exc:
            raise SummaryError(f"Cannot read book for summary: {exc}") from exc
        return sample_book_text(
            container,
            max_entries=SAMPLE_MAX_ENTRIES,
            max_chars=SAMPLE_MAX_CHARS,
        )
