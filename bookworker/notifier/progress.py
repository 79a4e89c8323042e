from bookworker.logging.logger import Log
from bookworker.notifier.base import BaseNotifier


class ProgressReporter:
    """Per-job progress sink.

    Repeated identical messages are skipped, and delivery failures are
    logged instead of failing the job.
    """

    def __init__(self, notifier: BaseNotifier, user_id: int) -> None:
        self._notifier = notifier
        self._user_id = user_id
        self._last_text: str | None = None

    async def __call__(self, text: str) -> None:
        if text == self._last_text:
            return
        self._last_text = text
        try:
            await self._notifier.update_progress(self._user_id, text)
        except Exception as exc:
            Log.warning(f"Progress update failed for user {self._user_id}: {exc}")
