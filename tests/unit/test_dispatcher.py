import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from bookworker.bot.dispatcher import Dispatcher
from bookworker.profile.exceptions import (
    InvalidInteractionError,
    UnknownOptionError,
    UnsupportedInputError,
)
from bookworker.profile.models import (
    DEFAULT_OPTIONS,
    FileSource,
    Job,
    MetadataOverride,
    OutputFormat,
    PendingModeKind,
    ReplacementRule,
    TranslationEngine,
    UrlSource,
)
from bookworker.worker.job_queue import JobQueue

USER_ID = 7


def _make_dispatcher(profile_repo) -> tuple[Dispatcher, MagicMock]:
    job_queue = MagicMock()
    job_queue.enqueue = AsyncMock(return_value=1)
    return Dispatcher(profile_repo, job_queue), job_queue


class _HeldRunner:
    """Runner that records jobs and holds each one until released."""

    def __init__(self, profile_repo) -> None:
        self.release = asyncio.Event()
        self.jobs: list[Job] = []
        self.queue = JobQueue(profile_repo, self)

    async def run(self, user_id: int, job: Job) -> None:
        self.jobs.append(job)
        await self.release.wait()


def _make_live_dispatcher(profile_repo) -> tuple[Dispatcher, _HeldRunner]:
    runner = _HeldRunner(profile_repo)
    return Dispatcher(profile_repo, runner.queue), runner


class TestToggle:
    @pytest.mark.asyncio
    async def test_first_contact_creates_default_profile(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)

        profile = await dispatcher.show_options(USER_ID)

        assert profile.options == DEFAULT_OPTIONS
        assert USER_ID in profile_repo.documents

    @pytest.mark.asyncio
    async def test_toggle_flips_one_option(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)

        options = await dispatcher.toggle(USER_ID, "toggle_removeImages")

        assert options.remove_images is not DEFAULT_OPTIONS.remove_images
        assert options.fix_spacing is DEFAULT_OPTIONS.fix_spacing
        stored = await profile_repo.get(USER_ID)
        assert stored.options == options

    @pytest.mark.asyncio
    async def test_toggle_twice_restores_value(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)

        await dispatcher.toggle(USER_ID, "toggle_translate")
        options = await dispatcher.toggle(USER_ID, "toggle_translate")

        assert options.translate is DEFAULT_OPTIONS.translate

    @pytest.mark.asyncio
    async def test_format_and_engine_selection(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)

        await dispatcher.toggle(USER_ID, "format_azw3")
        options = await dispatcher.toggle(USER_ID, "engine_deepl")

        assert options.output_format is OutputFormat.AZW3
        assert options.translation_engine is TranslationEngine.DEEPL

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "callback_id",
        ["toggle_deleteEverything", "format_exe", "engine_babelfish", "noise"],
    )
    async def test_unknown_identifier_leaves_profile_unchanged(
        self, profile_repo, callback_id: str
    ) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.toggle(USER_ID, "toggle_translate")
        before = dict(profile_repo.documents[USER_ID])

        with pytest.raises(UnknownOptionError):
            await dispatcher.toggle(USER_ID, callback_id)

        assert profile_repo.documents[USER_ID] == before


class TestDefaults:
    @pytest.mark.asyncio
    async def test_reset_without_saved_default_uses_builtin(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.toggle(USER_ID, "toggle_translate")

        options = await dispatcher.reset_options(USER_ID)

        assert options == DEFAULT_OPTIONS

    @pytest.mark.asyncio
    async def test_reset_returns_to_saved_default(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.toggle(USER_ID, "toggle_aiSummary")
        saved = await dispatcher.save_default(USER_ID)
        await dispatcher.toggle(USER_ID, "format_pdf")

        options = await dispatcher.reset_options(USER_ID)

        assert options == saved
        assert options.ai_summary is True
        assert options.output_format is OutputFormat.EPUB


class TestPendingModes:
    @pytest.mark.asyncio
    async def test_replacement_rules_become_single_use(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_replacement_rules(USER_ID)

        reply = await dispatcher.handle_text(USER_ID, "Capitulo, Capítulo\nno comma\n")

        profile = await profile_repo.get(USER_ID)
        assert profile.single_use_rules == [ReplacementRule("Capitulo", "Capítulo")]
        assert profile.pending_mode.kind is PendingModeKind.NONE
        assert "1 replacement rules" in reply

    @pytest.mark.asyncio
    async def test_rules_without_valid_lines_keep_mode(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_replacement_rules(USER_ID)

        with pytest.raises(InvalidInteractionError):
            await dispatcher.handle_text(USER_ID, "nothing useful")

        profile = await profile_repo.get(USER_ID)
        assert profile.pending_mode.kind is PendingModeKind.REPLACEMENT_RULES
        assert profile.single_use_rules == []

    @pytest.mark.asyncio
    async def test_metadata_dialog_with_keep_marker(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_metadata(USER_ID)

        await dispatcher.handle_text(USER_ID, "  New Title ")
        await dispatcher.handle_text(USER_ID, "-")

        profile = await profile_repo.get(USER_ID)
        assert profile.metadata_override == MetadataOverride(title="New Title", author=None)
        assert profile.pending_mode.kind is PendingModeKind.NONE

    @pytest.mark.asyncio
    async def test_css_stored_until_next_book(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_css(USER_ID)

        await dispatcher.handle_text(USER_ID, "p { text-indent: 1em }")

        profile = await profile_repo.get(USER_ID)
        assert profile.custom_css == "p { text-indent: 1em }"

    @pytest.mark.asyncio
    async def test_empty_css_rejected(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_css(USER_ID)

        with pytest.raises(InvalidInteractionError):
            await dispatcher.handle_text(USER_ID, "   ")

    @pytest.mark.asyncio
    async def test_cancel_clears_pending_mode(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_css(USER_ID)

        await dispatcher.cancel(USER_ID)

        profile = await profile_repo.get(USER_ID)
        assert profile.pending_mode.kind is PendingModeKind.NONE


class TestDictionaries:
    @pytest.mark.asyncio
    async def test_create_fill_and_activate(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_new_dictionary(USER_ID)

        await dispatcher.handle_text(USER_ID, "Names")
        await dispatcher.handle_text(USER_ID, "Jon,John\nAria,Arya")
        active = await dispatcher.toggle_dictionary(USER_ID, "Names")

        profile = await profile_repo.get(USER_ID)
        assert active is True
        assert profile.dictionaries["Names"] == [
            ReplacementRule("Jon", "John"),
            ReplacementRule("Aria", "Arya"),
        ]
        assert profile.active_dictionaries == ["Names"]
        assert profile.snapshot().dictionary_rules == tuple(profile.dictionaries["Names"])

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_new_dictionary(USER_ID)
        await dispatcher.handle_text(USER_ID, "Names")
        await dispatcher.begin_new_dictionary(USER_ID)

        with pytest.raises(InvalidInteractionError):
            await dispatcher.handle_text(USER_ID, "Names")

    @pytest.mark.asyncio
    async def test_toggle_twice_deactivates(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_new_dictionary(USER_ID)
        await dispatcher.handle_text(USER_ID, "Names")

        await dispatcher.toggle_dictionary(USER_ID, "Names")
        active = await dispatcher.toggle_dictionary(USER_ID, "Names")

        assert active is False

    @pytest.mark.asyncio
    async def test_delete_removes_activation(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)
        await dispatcher.begin_new_dictionary(USER_ID)
        await dispatcher.handle_text(USER_ID, "Names")
        await dispatcher.toggle_dictionary(USER_ID, "Names")

        await dispatcher.delete_dictionary(USER_ID, "Names")

        profile = await profile_repo.get(USER_ID)
        assert "Names" not in profile.dictionaries
        assert profile.active_dictionaries == []
        assert profile.pending_mode.kind is PendingModeKind.NONE

    @pytest.mark.asyncio
    async def test_unknown_dictionary_rejected(self, profile_repo) -> None:
        dispatcher, _ = _make_dispatcher(profile_repo)

        with pytest.raises(InvalidInteractionError):
            await dispatcher.toggle_dictionary(USER_ID, "Missing")
        with pytest.raises(InvalidInteractionError):
            await dispatcher.begin_dictionary_rules(USER_ID, "Missing")


class TestSubmission:
    @pytest.mark.asyncio
    async def test_submit_file_enqueues_source(self, profile_repo) -> None:
        dispatcher, job_queue = _make_dispatcher(profile_repo)

        position = await dispatcher.submit_file(USER_ID, "novel.epub", b"EPUB")

        assert position == 1
        job_queue.enqueue.assert_awaited_once_with(
            USER_ID, FileSource(file_name="novel.epub", content=b"EPUB"), "novel.epub"
        )

    @pytest.mark.asyncio
    async def test_submitted_job_carries_snapshot(self, profile_repo) -> None:
        dispatcher, runner = _make_live_dispatcher(profile_repo)
        await dispatcher.toggle(USER_ID, "toggle_translate")
        await dispatcher.begin_css(USER_ID)
        await dispatcher.handle_text(USER_ID, "p { margin: 0 }")

        await dispatcher.submit_file(USER_ID, "novel.epub", b"EPUB")
        runner.release.set()
        await runner.queue.wait_idle()

        job = runner.jobs[0]
        assert job.display_name == "novel.epub"
        assert job.snapshot.options.translate is True
        assert job.snapshot.custom_css == "p { margin: 0 }"

    @pytest.mark.asyncio
    async def test_single_use_rules_reach_only_next_submission(self, profile_repo) -> None:
        dispatcher, runner = _make_live_dispatcher(profile_repo)
        await dispatcher.begin_replacement_rules(USER_ID)
        await dispatcher.handle_text(USER_ID, "Capitulo, Capítulo")

        await dispatcher.submit_file(USER_ID, "one.epub", b"EPUB")
        await dispatcher.submit_file(USER_ID, "two.epub", b"EPUB")
        runner.release.set()
        await runner.queue.wait_idle()

        first, second = (job.snapshot for job in runner.jobs)
        assert first.single_use_rules == (ReplacementRule("Capitulo", "Capítulo"),)
        assert second.single_use_rules == ()

    @pytest.mark.asyncio
    async def test_unsupported_extension_rejected(self, profile_repo) -> None:
        dispatcher, job_queue = _make_dispatcher(profile_repo)

        with pytest.raises(UnsupportedInputError, match=r"\.exe"):
            await dispatcher.submit_file(USER_ID, "virus.exe", b"MZ")

        job_queue.enqueue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_url_uses_story_title(self, profile_repo) -> None:
        dispatcher, job_queue = _make_dispatcher(profile_repo)

        await dispatcher.submit_url(USER_ID, "https://stories.example/tales/the-long-night")

        _, source, display_name = job_queue.enqueue.await_args.args
        assert source == UrlSource(url="https://stories.example/tales/the-long-night")
        assert display_name == "the long night"

    @pytest.mark.asyncio
    async def test_text_link_without_pending_mode_is_submitted(self, profile_repo) -> None:
        dispatcher, job_queue = _make_dispatcher(profile_repo)

        reply = await dispatcher.handle_text(USER_ID, " https://stories.example/a ")

        assert reply == "Story queued at position 1."
        job_queue.enqueue.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_plain_text_without_pending_mode_rejected(self, profile_repo) -> None:
        dispatcher, job_queue = _make_dispatcher(profile_repo)

        with pytest.raises(InvalidInteractionError):
            await dispatcher.handle_text(USER_ID, "hello")

        job_queue.enqueue.assert_not_awaited()
