from dataclasses import dataclass, field


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one successful pipeline run."""

    content: bytes
    translated: bool = False
    summary: str | None = None
    warnings: list[str] = field(default_factory=list)
    images_removed: int = 0
    entries_modified: int = 0
