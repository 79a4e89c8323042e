class ConversionError(Exception):
    """Raised when the conversion engine exits with an error."""


class ConversionTimeoutError(ConversionError):
    """Raised when the conversion engine exceeds its time budget."""
