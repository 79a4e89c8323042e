"""Example notifier that writes everything to the log.

Use this module as a reference when wiring a real chat transport: implement
BaseNotifier on top of the transport's send/edit calls.
"""

from pathlib import Path

from bookworker.logging.logger import Log
from bookworker.notifier.base import BaseNotifier


class LogNotifier(BaseNotifier):
    """Logs outbound messages and optionally saves delivered documents."""

    def __init__(self, output_dir: Path | None = None) -> None:
        self._output_dir = output_dir

    async def send_message(self, user_id: int, text: str) -> None:
        Log.info(f"[to {user_id}] {text}")

    async def send_document(self, user_id: int, file_name: str, content: bytes) -> None:
        Log.info(f"[to {user_id}] document {file_name} ({len(content)} bytes)")
        if self._output_dir is not None:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            (self._output_dir / file_name).write_bytes(content)

    async def update_progress(self, user_id: int, text: str) -> None:
        Log.debug(f"[progress {user_id}] {text}")
