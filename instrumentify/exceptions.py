"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class InstrumentifyError(Exception):
    """Base exception for all application-specific errors."""


class AuthenticationError(InstrumentifyError):
    """Raised when no valid access token is available for the playlist service."""


class ConfigurationError(InstrumentifyError):
    """Raised for issues related to configuration loading or validation."""


class InvalidQualityError(InstrumentifyError):
    """Raised when an unknown separation quality tier is requested."""


class PlaylistError(InstrumentifyError):
    """Raised when a playlist URL cannot be parsed or its tracks cannot be read."""


class ProviderError(InstrumentifyError):
    """
    Raised when a search provider call fails or returns an unusable response.

    The resolver treats this as "no candidate from this provider".
    """


class CredentialUnavailableError(ProviderError):
    """Raised when a provider needs a credential that could not be obtained."""


class InvalidAudioError(InstrumentifyError):
    """Raised when fetched bytes do not look like a decodable audio file."""


class InferenceError(InstrumentifyError):
    """Raised when the separation model cannot be loaded or executed."""


class ProcessingError(InstrumentifyError):
    """Raised when a track's fetch/infer/collect cycle does not complete."""


class TaskBusyError(ProcessingError):
    """Raised when a track is triggered while it is already being processed."""
