from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from bookworker.profile.exceptions import UnknownOptionError


@dataclass(frozen=True)
class ReplacementRule:
    """Literal, case-sensitive substring replacement."""

    original: str
    replacement: str


class OutputFormat(str, Enum):
    EPUB = "epub"
    MOBI = "mobi"
    AZW3 = "azw3"
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"
    FB2 = "fb2"


class TranslationEngine(str, Enum):
    GOOGLE = "google"
    DEEPL = "deepl"
    OPENAI = "openai"


CANONICAL_FORMAT = OutputFormat.EPUB


@dataclass(frozen=True)
class Options:
    """Typed per-user transformation options."""

    remove_images: bool = True
    optimize_images: bool = False
    remove_styles: bool = True
    remove_empty_paragraphs: bool = True
    remove_hyperlinks: bool = False
    remove_footnotes: bool = False
    remove_watermarks: bool = True
    fix_punctuation: bool = True
    fix_spacing: bool = True
    translate: bool = False
    ai_summary: bool = False
    output_format: OutputFormat = CANONICAL_FORMAT
    translation_engine: TranslationEngine = TranslationEngine.GOOGLE

    def toggled(self, kind: OptionKind) -> Options:
        current = getattr(self, kind.attribute)
        return replace(self, **{kind.attribute: not current})


DEFAULT_OPTIONS = Options()


class OptionKind(str, Enum):
    """Closed set of boolean options a user can toggle.

    Values are the identifiers used by the chat keyboard (``toggle_<value>``).
    """

    REMOVE_IMAGES = "removeImages"
    OPTIMIZE_IMAGES = "optimizeImages"
    REMOVE_STYLES = "removeStyles"
    REMOVE_EMPTY_PARAGRAPHS = "removeEmptyP"
    REMOVE_HYPERLINKS = "removeLinks"
    REMOVE_FOOTNOTES = "removeFootnotes"
    REMOVE_WATERMARKS = "removeGoogle"
    FIX_PUNCTUATION = "fixPunctuation"
    FIX_SPACING = "fixSpacing"
    TRANSLATE = "translate"
    AI_SUMMARY = "aiSummary"

    @property
    def attribute(self) -> str:
        return _OPTION_ATTRIBUTES[self]

    @classmethod
    def from_callback(cls, callback_id: str) -> OptionKind:
        """Map ``toggle_<id>`` to an option kind.

        Raises:
            UnknownOptionError: for any identifier outside the closed set.
        """
        prefix = "toggle_"
        if not callback_id.startswith(prefix):
            raise UnknownOptionError(f"Not a toggle identifier: {callback_id!r}")
        try:
            return cls(callback_id[len(prefix):])
        except ValueError as exc:
            raise UnknownOptionError(f"Unknown option: {callback_id!r}") from exc


_OPTION_ATTRIBUTES: dict[OptionKind, str] = {
    OptionKind.REMOVE_IMAGES: "remove_images",
    OptionKind.OPTIMIZE_IMAGES: "optimize_images",
    OptionKind.REMOVE_STYLES: "remove_styles",
    OptionKind.REMOVE_EMPTY_PARAGRAPHS: "remove_empty_paragraphs",
    OptionKind.REMOVE_HYPERLINKS: "remove_hyperlinks",
    OptionKind.REMOVE_FOOTNOTES: "remove_footnotes",
    OptionKind.REMOVE_WATERMARKS: "remove_watermarks",
    OptionKind.FIX_PUNCTUATION: "fix_punctuation",
    OptionKind.FIX_SPACING: "fix_spacing",
    OptionKind.TRANSLATE: "translate",
    OptionKind.AI_SUMMARY: "ai_summary",
}


class PendingModeKind(str, Enum):
    NONE = "none"
    REPLACEMENT_RULES = "replacement_rules"
    METADATA_TITLE = "metadata_title"
    METADATA_AUTHOR = "metadata_author"
    DICTIONARY_RULES = "dictionary_rules"
    CSS = "css"
    NEW_DICTIONARY_NAME = "new_dictionary_name"


@dataclass(frozen=True)
class PendingMode:
    """The single "awaiting text input" state of a profile.

    ``dictionary_name`` is set only for DICTIONARY_RULES; ``pending_title``
    carries the title typed during METADATA_AUTHOR.
    """

    kind: PendingModeKind = PendingModeKind.NONE
    dictionary_name: str | None = None
    pending_title: str | None = None

    @classmethod
    def none(cls) -> PendingMode:
        return cls()

    @classmethod
    def dictionary_rules(cls, name: str) -> PendingMode:
        return cls(kind=PendingModeKind.DICTIONARY_RULES, dictionary_name=name)

    @classmethod
    def metadata_author(cls, title: str | None) -> PendingMode:
        return cls(kind=PendingModeKind.METADATA_AUTHOR, pending_title=title)

    @property
    def is_active(self) -> bool:
        return self.kind is not PendingModeKind.NONE


@dataclass(frozen=True)
class MetadataOverride:
    """Title/author to apply to the next book; None keeps the book's value."""

    title: str | None = None
    author: str | None = None


@dataclass(frozen=True)
class FileSource:
    file_name: str
    content: bytes


@dataclass(frozen=True)
class UrlSource:
    url: str


JobSource = FileSource | UrlSource


@dataclass(frozen=True)
class JobSnapshot:
    """Options and one-shot state frozen at enqueue time."""

    options: Options = DEFAULT_OPTIONS
    single_use_rules: tuple[ReplacementRule, ...] = ()
    dictionary_rules: tuple[ReplacementRule, ...] = ()
    metadata_override: MetadataOverride | None = None
    custom_css: str | None = None

    @property
    def replacement_rules(self) -> tuple[ReplacementRule, ...]:
        return self.single_use_rules + self.dictionary_rules


@dataclass(frozen=True)
class Job:
    source: JobSource
    snapshot: JobSnapshot
    display_name: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class UserProfile:
    """Per-user persistent configuration plus the user's job queue."""

    user_id: int
    options: Options = DEFAULT_OPTIONS
    saved_default: Options | None = None
    dictionaries: dict[str, list[ReplacementRule]] = field(default_factory=dict)
    active_dictionaries: list[str] = field(default_factory=list)
    single_use_rules: list[ReplacementRule] = field(default_factory=list)
    metadata_override: MetadataOverride | None = None
    custom_css: str | None = None
    pending_mode: PendingMode = field(default_factory=PendingMode.none)
    queue: list[Job] = field(default_factory=list)

    @classmethod
    def create(cls, user_id: int) -> UserProfile:
        return cls(user_id=user_id)

    def default_options(self) -> Options:
        return self.saved_default if self.saved_default is not None else DEFAULT_OPTIONS

    def snapshot(self) -> JobSnapshot:
        """Freeze the options and one-shot state for a new job."""
        dictionary_rules: list[ReplacementRule] = []
        for name in self.active_dictionaries:
            dictionary_rules.extend(self.dictionaries.get(name, []))
        return JobSnapshot(
            options=self.options,
            single_use_rules=tuple(self.single_use_rules),
            dictionary_rules=tuple(dictionary_rules),
            metadata_override=self.metadata_override,
            custom_css=self.custom_css,
        )

    def submit(self, source: JobSource, display_name: str) -> tuple[Job, int]:
        """Queue a new job, consuming the one-shot state into its snapshot.

        Returns the job and its position in the queue.
        """
        job = Job(source=source, snapshot=self.snapshot(), display_name=display_name)
        self.clear_one_shot_state()
        return job, self.append_job(job)

    def append_job(self, job: Job) -> int:
        self.queue.append(job)
        return len(self.queue)

    def pop_job(self) -> Job | None:
        if not self.queue:
            return None
        return self.queue.pop(0)

    def clear_one_shot_state(self) -> None:
        self.single_use_rules = []
        self.custom_css = None
        self.metadata_override = None
