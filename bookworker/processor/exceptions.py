class ProcessorError(Exception):
    """Raised when the pipeline is driven out of order."""
