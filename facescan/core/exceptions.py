"""Custom exceptions for the face scan matching engine."""
from typing import Optional


class FaceScanError(Exception):
    """Base exception for face scan operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face scan error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class NullInputError(FaceScanError):
    """Raised when a required embedding or collection argument is missing."""
    pass


class LengthMismatchError(FaceScanError):
    """Raised when two vectors that must be compared or averaged differ in length."""
    pass


class InvalidEmbeddingError(FaceScanError):
    """Raised when an embedding holds values that are not numbers."""
    pass


class EmptyInputError(FaceScanError):
    """Raised when an average is requested over zero vectors."""
    pass


class UndefinedAverageError(FaceScanError):
    """Raised when an average update has no defined result (e.g. removing the last sample)."""
    pass


class ScanCancelledError(FaceScanError):
    """Raised when a gallery scan is cancelled between two comparisons."""
    pass


class InvalidImageError(FaceScanError):
    """Raised when the provided image is invalid or cannot be processed."""
    pass


class ModelLoadError(FaceScanError):
    """Raised when the face analysis model fails to load."""
    pass
