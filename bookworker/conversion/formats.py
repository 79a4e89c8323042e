from pathlib import PurePosixPath

EPUB_EXTENSION = "epub"

# Formats ebook-convert can turn into EPUB on ingest.
INGEST_EXTENSIONS = frozenset(
    {"mobi", "azw", "azw3", "fb2", "docx", "odt", "rtf", "txt", "html", "htm", "pdf", "lit", "pdb"}
)

SUPPORTED_INPUT_EXTENSIONS = INGEST_EXTENSIONS | {EPUB_EXTENSION}


def file_extension(file_name: str) -> str:
    """Lower-cased extension without the dot, or an empty string."""
    return PurePosixPath(file_name).suffix.lower().lstrip(".")


def file_stem(file_name: str) -> str:
    return PurePosixPath(file_name).stem or "book"


def is_supported_input(file_name: str) -> bool:
    return file_extension(file_name) in SUPPORTED_INPUT_EXTENSIONS
