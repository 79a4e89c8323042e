from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from bookworker.notifier.log_notifier import LogNotifier
from bookworker.notifier.progress import ProgressReporter


class TestProgressReporter:
    @pytest.mark.asyncio
    async def test_forwards_to_notifier(self) -> None:
        notifier = AsyncMock()
        reporter = ProgressReporter(notifier, user_id=3)

        await reporter("Opening book...")

        notifier.update_progress.assert_awaited_once_with(3, "Opening book...")

    @pytest.mark.asyncio
    async def test_skips_repeated_text(self) -> None:
        notifier = AsyncMock()
        reporter = ProgressReporter(notifier, user_id=3)

        await reporter("Cleaning content...")
        await reporter("Cleaning content...")
        await reporter("Packing book...")

        assert notifier.update_progress.await_count == 2

    @pytest.mark.asyncio
    async def test_delivery_failure_is_swallowed(self) -> None:
        notifier = AsyncMock()
        notifier.update_progress.side_effect = RuntimeError("chat down")
        reporter = ProgressReporter(notifier, user_id=3)

        await reporter("Opening book...")

        notifier.update_progress.assert_awaited_once()


class TestLogNotifier:
    @pytest.mark.asyncio
    async def test_saves_documents_to_output_dir(self, tmp_path: Path) -> None:
        notifier = LogNotifier(output_dir=tmp_path / "out")

        await notifier.send_document(1, "book_clean.epub", b"EPUB")

        assert (tmp_path / "out" / "book_clean.epub").read_bytes() == b"EPUB"

    @pytest.mark.asyncio
    async def test_messages_without_output_dir(self) -> None:
        notifier = LogNotifier()

        await notifier.send_message(1, "hello")
        await notifier.update_progress(1, "working")
        await notifier.send_document(1, "book.epub", b"EPUB")
