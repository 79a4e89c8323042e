from enum import Enum
from pathlib import PurePosixPath


class EntryKind(str, Enum):
    IMAGE = "image"
    MARKUP = "markup"
    OTHER = "other"


IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp"})
MARKUP_EXTENSIONS = frozenset({".html", ".xhtml", ".htm", ".xml"})
STYLESHEET_EXTENSION = ".css"


def _extension(name: str) -> str:
    return PurePosixPath(name).suffix.lower()


def classify_entry(name: str) -> EntryKind:
    """Classify an archive entry by its file extension."""
    ext = _extension(name)
    if ext in IMAGE_EXTENSIONS:
        return EntryKind.IMAGE
    if ext in MARKUP_EXTENSIONS:
        return EntryKind.MARKUP
    return EntryKind.OTHER


def is_stylesheet(name: str) -> bool:
    return _extension(name) == STYLESHEET_EXTENSION
