from pathlib import Path

from bookworker.summary.exceptions import SummaryError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the summary prompt template from a file.

    Args:
        path: Path to the prompt template file.
              Defaults to the bundled summary_prompt.txt.

    Returns:
        The raw template string with ``{language}`` and ``{book_text}``
        placeholders.

    Raises:
        SummaryError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "summary_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SummaryError(f"Failed to load prompt template: {exc}") from exc
