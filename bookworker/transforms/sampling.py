import re

from bookworker.container.codec import EpubContainer
from bookworker.container.entries import EntryKind, classify_entry
from bookworker.container.exceptions import ContainerError
from bookworker.transforms.document import iter_elements, parse_markup, text_content
from bookworker.transforms.exceptions import EntryParseError

_WHITESPACE_RE = re.compile(r"\s+")


def sample_book_text(
    container: EpubContainer,
    max_entries: int = 5,
    max_chars: int = 5000,
) -> str:
    """Collect stripped body text from the first markup entries.

    Entries without usable body text are skipped and do not count towards
    ``max_entries``.
    """
    collected: list[str] = []
    total = 0
    sampled = 0
    for name in container.entry_names():
        if sampled >= max_entries or total >= max_chars:
            break
        if classify_entry(name) is not EntryKind.MARKUP:
            continue
        try:
            root = parse_markup(container.read_binary(name))
        except (ContainerError, EntryParseError):
            continue
        body = next(iter_elements(root, "body"), root)
        text = _WHITESPACE_RE.sub(" ", text_content(body)).strip()
        if not text:
            continue
        sampled += 1
        collected.append(text)
        total += len(text) + 1
    return " ".join(collected)[:max_chars]
