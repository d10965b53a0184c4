"""
Exceptions raised by skia_binaries.
"""

from typing import Optional


class SkiaBinariesException(Exception):
    """
    Base exception for all skia_binaries errors.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(SkiaBinariesException):
    """Raised when configuration or package metadata is invalid."""


class InvalidMilestoneError(SkiaBinariesException, ValueError):
    """Raised when a Skia milestone identifier is malformed."""


class DownloadError(SkiaBinariesException):
    """
    Raised when an artifact cannot be downloaded.

    Carries the HTTP status code when the failure came from a response.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RedirectError(DownloadError):
    """Raised for a redirect response that cannot be followed."""


class TransientNetworkError(DownloadError):
    """Raised for connection resets and timeouts."""


class ExtractionError(SkiaBinariesException):
    """Raised when no tar candidate could extract an archive."""


class PayloadShapeError(SkiaBinariesException):
    """Raised when an extracted archive does not have the expected layout."""
