class ProfileError(Exception):
    """Base exception for profile and interaction errors."""


class UnknownOptionError(ProfileError):
    """Raised when an inbound option identifier is not part of the closed set."""


class InvalidInteractionError(ProfileError):
    """Raised when user input does not fit the current interaction."""


class UnsupportedInputError(ProfileError):
    """Raised when a submission cannot become a job (e.g. unknown extension)."""


class ProfileSerializationError(ProfileError):
    """Raised when a stored profile document cannot be decoded."""
