"""Custom exceptions for the YouTube playlist creator"""

from typing import Optional


class PlaylistCreatorError(Exception):
    """Base exception for the playlist creator"""
    pass


class InvalidInputError(PlaylistCreatorError):
    """Raised before any network call when caller input is unusable"""
    pass


class ConfigurationError(PlaylistCreatorError):
    """Exception raised for configuration errors"""
    pass


class NotFoundError(PlaylistCreatorError):
    """Exception raised when a looked-up resource does not exist"""
    pass


class ChannelNotFoundError(NotFoundError):
    """No channel matched the search or the channel ID has no record"""
    pass


class MalformedResponseError(PlaylistCreatorError):
    """Response decoded but an expected field is missing"""
    pass


class UpstreamError(PlaylistCreatorError):
    """
    Exception raised for YouTube Data API failures.

    Covers network errors, non-success HTTP statuses and platform
    rejections. ``status_code`` and ``reason`` are populated when the
    transport exposed them.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class InvalidAPIKeyError(UpstreamError):
    """The API key was rejected as invalid, expired or missing"""
    pass


class QuotaExceededError(UpstreamError):
    """Exception raised when YouTube API quota is exceeded"""
    pass
