"""Interaction dispatcher: the operations a chat transport calls per user action."""

from collections.abc import Callable
from dataclasses import replace
from enum import Enum
from urllib.parse import urlparse

from bookworker.bot.rules import parse_rules
from bookworker.conversion.formats import (
    SUPPORTED_INPUT_EXTENSIONS,
    file_extension,
    is_supported_input,
)
from bookworker.conversion.recipes import story_title
from bookworker.database.repositories.profile_repository import ProfileRepository
from bookworker.logging.logger import Log
from bookworker.profile.exceptions import (
    InvalidInteractionError,
    UnknownOptionError,
    UnsupportedInputError,
)
from bookworker.profile.models import (
    FileSource,
    MetadataOverride,
    OptionKind,
    Options,
    OutputFormat,
    PendingMode,
    PendingModeKind,
    ReplacementRule,
    TranslationEngine,
    UrlSource,
    UserProfile,
)
from bookworker.worker.job_queue import JobQueue

KEEP_EXISTING = "-"
_FORMAT_PREFIX = "format_"
_ENGINE_PREFIX = "engine_"


class Dispatcher:
    def __init__(self, profile_repo: ProfileRepository, job_queue: JobQueue) -> None:
        self._profile_repo = profile_repo
        self._job_queue = job_queue

    async def show_options(self, user_id: int) -> UserProfile:
        """Return the user's profile, creating it on first contact."""
        return await self._profile_repo.update(user_id, lambda profile: profile)

    async def toggle(self, user_id: int, callback_id: str) -> Options:
        """Apply a ``toggle_<option>``, ``format_<value>`` or ``engine_<value>`` action.

        Raises:
            UnknownOptionError: if the identifier is not recognized. The
                profile is left unchanged.
        """
        change = self._option_change(callback_id)

        def mutate(profile: UserProfile) -> Options:
            profile.options = change(profile.options)
            return profile.options

        return await self._profile_repo.update(user_id, mutate)

    async def reset_options(self, user_id: int) -> Options:
        def mutate(profile: UserProfile) -> Options:
            profile.options = profile.default_options()
            return profile.options

        return await self._profile_repo.update(user_id, mutate)

    async def save_default(self, user_id: int) -> Options:
        def mutate(profile: UserProfile) -> Options:
            profile.saved_default = profile.options
            return profile.options

        return await self._profile_repo.update(user_id, mutate)

    async def begin_replacement_rules(self, user_id: int) -> None:
        await self._set_pending(user_id, PendingMode(kind=PendingModeKind.REPLACEMENT_RULES))

    async def begin_metadata(self, user_id: int) -> None:
        await self._set_pending(user_id, PendingMode(kind=PendingModeKind.METADATA_TITLE))

    async def begin_css(self, user_id: int) -> None:
        await self._set_pending(user_id, PendingMode(kind=PendingModeKind.CSS))

    async def begin_new_dictionary(self, user_id: int) -> None:
        await self._set_pending(user_id, PendingMode(kind=PendingModeKind.NEW_DICTIONARY_NAME))

    async def begin_dictionary_rules(self, user_id: int, name: str) -> None:
        def mutate(profile: UserProfile) -> None:
            self._require_dictionary(profile, name)
            profile.pending_mode = PendingMode.dictionary_rules(name)

        await self._profile_repo.update(user_id, mutate)

    async def toggle_dictionary(self, user_id: int, name: str) -> bool:
        """Activate or deactivate a dictionary. Returns True if now active."""

        def mutate(profile: UserProfile) -> bool:
            self._require_dictionary(profile, name)
            if name in profile.active_dictionaries:
                profile.active_dictionaries.remove(name)
                return False
            profile.active_dictionaries.append(name)
            return True

        return await self._profile_repo.update(user_id, mutate)

    async def delete_dictionary(self, user_id: int, name: str) -> None:
        def mutate(profile: UserProfile) -> None:
            self._require_dictionary(profile, name)
            del profile.dictionaries[name]
            if name in profile.active_dictionaries:
                profile.active_dictionaries.remove(name)
            if profile.pending_mode.dictionary_name == name:
                profile.pending_mode = PendingMode.none()

        await self._profile_repo.update(user_id, mutate)

    async def cancel(self, user_id: int) -> None:
        await self._set_pending(user_id, PendingMode.none())

    async def handle_text(self, user_id: int, text: str) -> str:
        """Consume free text according to the user's pending mode.

        With no pending mode, an http(s) URL is submitted as a story download.

        Raises:
            InvalidInteractionError: if the text is not acceptable in the
                current mode. The profile is left unchanged.
        """
        pending = await self._profile_repo.update(user_id, lambda profile: profile.pending_mode)
        if not pending.is_active:
            if self._is_url(text.strip()):
                position = await self.submit_url(user_id, text.strip())
                return f"Story queued at position {position}."
            raise InvalidInteractionError("Send a book file or a story link.")

        return await self._profile_repo.update(
            user_id,
            lambda profile: self._apply_text(profile, text),
        )

    async def submit_file(self, user_id: int, file_name: str, content: bytes) -> int:
        """Queue an uploaded book. Returns the job's position in the user's queue.

        Raises:
            UnsupportedInputError: for extensions the pipeline cannot ingest.
        """
        if not is_supported_input(file_name):
            supported = ", ".join(sorted(SUPPORTED_INPUT_EXTENSIONS))
            raise UnsupportedInputError(
                f"Unsupported file type '.{file_extension(file_name)}'. "
                f"Supported: {supported}"
            )
        return await self._submit(
            user_id,
            FileSource(file_name=file_name, content=content),
            display_name=file_name,
        )

    async def submit_url(self, user_id: int, url: str) -> int:
        if not self._is_url(url):
            raise UnsupportedInputError(f"Not a downloadable link: {url!r}")
        return await self._submit(user_id, UrlSource(url=url), display_name=story_title(url))

    async def _submit(self, user_id: int, source: FileSource | UrlSource, display_name: str) -> int:
        Log.info(f"Submission received: {display_name}", user_id=user_id)
        return await self._job_queue.enqueue(user_id, source, display_name)

    def _apply_text(self, profile: UserProfile, text: str) -> str:
        mode = profile.pending_mode
        kind = mode.kind

        if kind is PendingModeKind.REPLACEMENT_RULES:
            rules = self._require_rules(text)
            profile.single_use_rules = rules
            profile.pending_mode = PendingMode.none()
            return f"{len(rules)} replacement rules will apply to your next book."

        if kind is PendingModeKind.METADATA_TITLE:
            profile.pending_mode = PendingMode.metadata_author(self._metadata_value(text))
            return "Now send the author ('-' keeps the book's author)."

        if kind is PendingModeKind.METADATA_AUTHOR:
            profile.metadata_override = MetadataOverride(
                title=mode.pending_title,
                author=self._metadata_value(text),
            )
            profile.pending_mode = PendingMode.none()
            return "Metadata will be applied to your next book."

        if kind is PendingModeKind.CSS:
            if not text.strip():
                raise InvalidInteractionError("The stylesheet is empty.")
            profile.custom_css = text
            profile.pending_mode = PendingMode.none()
            return "The stylesheet will be applied to your next book."

        if kind is PendingModeKind.NEW_DICTIONARY_NAME:
            name = text.strip()
            if not name:
                raise InvalidInteractionError("Dictionary name cannot be empty.")
            if name in profile.dictionaries:
                raise InvalidInteractionError(f"Dictionary '{name}' already exists.")
            profile.dictionaries[name] = []
            profile.pending_mode = PendingMode.dictionary_rules(name)
            return f"Dictionary '{name}' created. Now send its rules."

        if kind is PendingModeKind.DICTIONARY_RULES:
            name = mode.dictionary_name
            self._require_dictionary(profile, name)
            rules = self._require_rules(text)
            profile.dictionaries[name] = rules
            profile.pending_mode = PendingMode.none()
            return f"Dictionary '{name}' saved with {len(rules)} rules."

        raise InvalidInteractionError("Nothing is waiting for text input.")

    async def _set_pending(self, user_id: int, mode: PendingMode) -> None:
        def mutate(profile: UserProfile) -> None:
            profile.pending_mode = mode

        await self._profile_repo.update(user_id, mutate)

    @staticmethod
    def _option_change(callback_id: str) -> Callable[[Options], Options]:
        if callback_id.startswith(_FORMAT_PREFIX):
            output_format = _lookup(OutputFormat, callback_id, _FORMAT_PREFIX)
            return lambda options: replace(options, output_format=output_format)
        if callback_id.startswith(_ENGINE_PREFIX):
            engine = _lookup(TranslationEngine, callback_id, _ENGINE_PREFIX)
            return lambda options: replace(options, translation_engine=engine)
        kind = OptionKind.from_callback(callback_id)
        return lambda options: options.toggled(kind)

    @staticmethod
    def _require_dictionary(profile: UserProfile, name: str | None) -> None:
        if name is None or name not in profile.dictionaries:
            raise InvalidInteractionError(f"Unknown dictionary: {name!r}")

    @staticmethod
    def _require_rules(text: str) -> list[ReplacementRule]:
        rules = parse_rules(text)
        if not rules:
            raise InvalidInteractionError(
                "No valid rules found. Use one 'original,replacement' per line."
            )
        return rules

    @staticmethod
    def _metadata_value(text: str) -> str | None:
        value = text.strip()
        if not value or value == KEEP_EXISTING:
            return None
        return value

    @staticmethod
    def _is_url(text: str) -> bool:
        parsed = urlparse(text)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _lookup(enum_type: type[Enum], callback_id: str, prefix: str) -> Enum:
    try:
        return enum_type(callback_id[len(prefix):])
    except ValueError as exc:
        raise UnknownOptionError(f"Unknown option: {callback_id!r}") from exc
