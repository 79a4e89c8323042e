class TransformError(Exception):
    """Base exception for document transform errors."""


class EntryParseError(TransformError):
    """Raised when a markup entry cannot be parsed into a document tree."""
