import asyncio

import httpx

from bookworker.container.exceptions import CorruptArchiveError
from bookworker.conversion.calibre_converter import CalibreConverter
from bookworker.conversion.exceptions import ConversionError, ConversionTimeoutError
from bookworker.conversion.formats import (
    EPUB_EXTENSION,
    INGEST_EXTENSIONS,
    file_extension,
    file_stem,
)
from bookworker.database.repositories.content_cache_repository import ContentCacheRepository
from bookworker.logging.logger import Log
from bookworker.notifier.base import BaseNotifier
from bookworker.notifier.progress import ProgressReporter
from bookworker.processor.models import PipelineResult
from bookworker.processor.processor import Processor
from bookworker.profile.exceptions import UnsupportedInputError
from bookworker.profile.models import FileSource, Job
from bookworker.summary.exceptions import SummaryError
from bookworker.translation.exceptions import (
    TranslationError,
    TranslationNetworkError,
    TranslationRateLimitedError,
)

RATE_LIMITED_MESSAGE = (
    "The translation service is limiting requests right now. Please try again later."
)
TIMEOUT_MESSAGE = "The operation took too long and was cancelled. Please try again later."
CORRUPT_ARCHIVE_MESSAGE = "The file is damaged or is not a valid EPUB archive."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing your book."

_TIMEOUT_ERRORS = (
    ConversionTimeoutError,
    TranslationNetworkError,
    httpx.TimeoutException,
    asyncio.TimeoutError,
)


class JobRunner:
    """Run one job: resolve the source, process it, deliver or report the failure."""

    def __init__(
        self,
        processor: Processor,
        converter: CalibreConverter,
        cache_repo: ContentCacheRepository,
        notifier: BaseNotifier,
    ) -> None:
        self._processor = processor
        self._converter = converter
        self._cache_repo = cache_repo
        self._notifier = notifier

    async def run(self, user_id: int, job: Job) -> None:
        """Execute a single job with error handling. Never raises."""
        Log.info(f"Running job: {job.display_name}", user_id=user_id, job_id=job.id)
        progress = ProgressReporter(self._notifier, user_id)
        try:
            source = await self._resolve_source(job, progress)
            result = await self._processor.process(source, job.snapshot, progress)
            await self._deliver(user_id, job, result)
            Log.info("Job completed successfully", user_id=user_id, job_id=job.id)
        except Exception as exc:
            await self._handle_failure(user_id, job, exc)

    async def _resolve_source(self, job: Job, progress: ProgressReporter) -> bytes:
        source = job.source
        if isinstance(source, FileSource):
            extension = file_extension(source.file_name)
            if extension == EPUB_EXTENSION:
                return source.content
            if extension in INGEST_EXTENSIONS:
                await progress(f"Converting {extension.upper()} to EPUB...")
                return await self._converter.to_epub(source.content, source.file_name)
            raise UnsupportedInputError(f"Unsupported file type: .{extension or '?'}")

        key = self._cache_repo.cache_key(source.url)
        cached = await self._cache_repo.get(key)
        if cached is not None:
            Log.info("Story cache hit", url=source.url)
            return cached
        await progress("Downloading story...")
        content = await self._converter.fetch_story(source.url)
        await self._cache_repo.put(key, content)
        return content

    async def _deliver(self, user_id: int, job: Job, result: PipelineResult) -> None:
        await self._notifier.send_document(
            user_id,
            self.output_name(job, result),
            result.content,
        )
        if result.warnings:
            listing = "\n".join(f"- {warning}" for warning in result.warnings)
            await self._notifier.send_message(
                user_id,
                f"Some parts of the book could not be processed and were left as is:\n{listing}",
            )
        if result.summary:
            await self._notifier.send_message(user_id, f"Summary:\n{result.summary}")

    @staticmethod
    def output_name(job: Job, result: PipelineResult) -> str:
        suffix = "translated" if result.translated else "clean"
        output_format = job.snapshot.options.output_format.value
        return f"{file_stem(job.display_name)}_{suffix}.{output_format}"

    async def _handle_failure(self, user_id: int, job: Job, exc: Exception) -> None:
        Log.exception(f"Job failed: {exc!r}", user_id=user_id, job_id=job.id)
        try:
            await self._notifier.send_message(user_id, self.failure_message(exc))
        except Exception:
            Log.exception("Could not report job failure", user_id=user_id, job_id=job.id)

    @staticmethod
    def failure_message(exc: Exception) -> str:
        if isinstance(exc, TranslationRateLimitedError):
            return RATE_LIMITED_MESSAGE
        if isinstance(exc, _TIMEOUT_ERRORS):
            return TIMEOUT_MESSAGE
        if isinstance(exc, CorruptArchiveError):
            return CORRUPT_ARCHIVE_MESSAGE
        if isinstance(exc, UnsupportedInputError):
            return str(exc)
        if isinstance(exc, (ConversionError, TranslationError, SummaryError)):
            return f"Processing failed: {exc}"
        return UNEXPECTED_ERROR_MESSAGE
