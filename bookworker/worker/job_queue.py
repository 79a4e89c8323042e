"""Per-user FIFO job queue.

Each user is either idle or draining. Draining is one asyncio task per user
that pops jobs until the persisted queue is empty, so one user's jobs never
overlap while different users drain independently. One-shot state is
consumed when a job is queued, so it reaches exactly one job whatever that
job's outcome.
"""

import asyncio

from bookworker.database.repositories.profile_repository import ProfileRepository
from bookworker.logging.logger import Log
from bookworker.profile.models import JobSource, UserProfile
from bookworker.worker.job_runner import JobRunner


class JobQueue:
    def __init__(self, profile_repo: ProfileRepository, job_runner: JobRunner) -> None:
        self._profile_repo = profile_repo
        self._job_runner = job_runner
        self._drainers: dict[int, asyncio.Task[None]] = {}
        self._wakeups: set[int] = set()

    async def enqueue(self, user_id: int, source: JobSource, display_name: str) -> int:
        """Snapshot the profile into a new job, persist it and return its position."""
        job, position = await self._profile_repo.update(
            user_id,
            lambda profile: profile.submit(source, display_name),
        )
        Log.info(
            f"Enqueued job {job.id} at position {position}",
            user_id=user_id,
            job_id=job.id,
        )
        self._ensure_draining(user_id)
        return position

    async def resume(self) -> int:
        """Restart draining for every user with persisted pending jobs."""
        user_ids = await self._profile_repo.users_with_pending_jobs()
        for user_id in user_ids:
            self._ensure_draining(user_id)
        if user_ids:
            Log.info(f"Resumed draining for {len(user_ids)} users")
        return len(user_ids)

    def is_draining(self, user_id: int) -> bool:
        return user_id in self._drainers

    async def wait_idle(self) -> None:
        """Wait until every user's queue has been drained."""
        while self._drainers:
            await asyncio.gather(*self._drainers.values(), return_exceptions=True)

    def _ensure_draining(self, user_id: int) -> None:
        if user_id in self._drainers:
            # The drain loop may already have seen an empty queue.
            self._wakeups.add(user_id)
            return
        self._drainers[user_id] = asyncio.create_task(
            self._drain(user_id),
            name=f"drain-user-{user_id}",
        )

    async def _drain(self, user_id: int) -> None:
        try:
            while True:
                self._wakeups.discard(user_id)
                job = await self._profile_repo.update(user_id, UserProfile.pop_job)
                if job is None:
                    if user_id in self._wakeups:
                        continue
                    break
                try:
                    await self._job_runner.run(user_id, job)
                except Exception:
                    Log.exception("Job escaped its runner", user_id=user_id, job_id=job.id)
        except Exception:
            Log.exception("Drain loop stopped", user_id=user_id)
        finally:
            self._drainers.pop(user_id, None)
            self._wakeups.discard(user_id)
