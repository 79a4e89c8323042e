class TranslationError(Exception):
    """Raised when a translation provider fails."""


class TranslationRateLimitedError(TranslationError):
    """Raised when the provider rejects the call because of quota or rate limits."""


class TranslationNetworkError(TranslationError):
    """Raised when the provider cannot be reached or the call times out."""
