import asyncio
from dataclasses import dataclass

from bookworker.bot.dispatcher import Dispatcher
from bookworker.config.settings import Settings
from bookworker.conversion.calibre_converter import CalibreConverter
from bookworker.database.connection import close_pool, ensure_schema, init_pool
from bookworker.database.repositories.content_cache_repository import ContentCacheRepository
from bookworker.database.repositories.profile_repository import ProfileRepository
from bookworker.logging.logger import Log
from bookworker.notifier.base import BaseNotifier
from bookworker.notifier.log_notifier import LogNotifier
from bookworker.processor.processor import build_processor
from bookworker.worker.job_queue import JobQueue
from bookworker.worker.job_runner import JobRunner


@dataclass(frozen=True)
class Application:
    dispatcher: Dispatcher
    job_queue: JobQueue


def build_application(settings: Settings, notifier: BaseNotifier) -> Application:
    """Wire repositories, collaborators, the queue and the dispatcher."""
    converter = CalibreConverter.from_settings(settings)
    profile_repo = ProfileRepository()
    job_runner = JobRunner(
        processor=build_processor(settings, converter=converter),
        converter=converter,
        cache_repo=ContentCacheRepository(),
        notifier=notifier,
    )
    job_queue = JobQueue(profile_repo, job_runner)
    return Application(
        dispatcher=Dispatcher(profile_repo, job_queue),
        job_queue=job_queue,
    )


async def serve(settings: Settings) -> None:
    """Initialize pool -> purge stale cache -> resume queues -> serve until cancelled."""
    await init_pool(settings)
    try:
        await ensure_schema()
        purged = await ContentCacheRepository().purge_older_than(settings.cache_max_age_days)
        Log.info(f"Purged {purged} cached stories older than {settings.cache_max_age_days} days")

        app = build_application(settings, notifier=LogNotifier())
        await app.job_queue.resume()
        Log.info("Worker started, waiting for submissions")
        await asyncio.Event().wait()
    finally:
        await close_pool()


def main() -> None:
    """Entry point."""
    settings = Settings()
    Log.configure(settings.log_level)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        Log.info("Worker shutting down gracefully")


if __name__ == "__main__":
    main()
