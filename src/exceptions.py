"""Exceptions raised by the reviews harvester."""


class ReviewsHarvesterError(Exception):
    """Base exception for all harvester errors."""
    pass


class MalformedPayloadError(ReviewsHarvesterError):
    """Raised when a reviews response body cannot be decoded."""
    pass


class NavigationError(ReviewsHarvesterError):
    """Raised when the place page cannot be driven to its first reviews payload."""
    pass


class StorageError(ReviewsHarvesterError):
    """Raised when reviews cannot be written to or read from storage."""
    pass


class ConfigurationError(ReviewsHarvesterError):
    """Raised when settings or input sources are invalid."""
    pass
