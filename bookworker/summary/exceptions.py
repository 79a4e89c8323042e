class SummaryError(Exception):
    """Raised when summarization fails."""


class SummaryNetworkError(SummaryError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
