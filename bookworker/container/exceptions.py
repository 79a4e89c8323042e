class ContainerError(Exception):
    """Base exception for all container-related errors."""


class CorruptArchiveError(ContainerError):
    """Raised when the submitted bytes cannot be opened as an archive."""


class EntryMissingError(ContainerError):
    """Raised when a named entry does not exist in the container."""


class EntryReadError(ContainerError):
    """Raised when a single entry exists but its payload cannot be decoded."""


class PackageDocumentError(ContainerError):
    """Raised when the OPF package document is missing or malformed."""
