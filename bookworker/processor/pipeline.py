from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import ClassVar

from bookworker.container.codec import EpubContainer
from bookworker.language.models import TranslationDecision
from bookworker.processor.exceptions import ProcessorError
from bookworker.profile.models import JobSnapshot

ProgressCallback = Callable[[str], Awaitable[None]]


async def no_progress(_: str) -> None:
    return None


@dataclass(slots=True)
class PipelineContext:
    source: bytes
    snapshot: JobSnapshot
    progress: ProgressCallback = no_progress
    container: EpubContainer | None = None
    decision: TranslationDecision | None = None
    translate_entries: bool = False
    translate_book: bool = False
    images_to_remove: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    entries_modified: int = 0
    images_removed: int = 0
    content: bytes = b""
    translated: bool = False
    summary: str | None = None

    def require_container(self) -> EpubContainer:
        if self.container is None:
            raise ProcessorError("PipelineContext.container must be set before this step")
        return self.container


class PipelineStep(ABC):
    progress_message: ClassVar[str] = ""

    def should_run(self, context: PipelineContext) -> bool:
        return True

    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
