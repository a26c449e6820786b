"""Custom exceptions for the thumbnail pipeline."""

from __future__ import annotations

from typing import List, Tuple


class ThumbnailPipelineError(Exception):
    """Base exception for all thumbnail pipeline errors."""


class ConfigurationError(ThumbnailPipelineError):
    """Error raised for invalid or missing deployment configuration."""


class ValidationError(ThumbnailPipelineError):
    """Error raised when client supplied resize parameters are invalid.

    Every offending field is reported, never only the first one.
    """

    def __init__(self, issues: List[Tuple[str, str]]):
        self.issues = list(issues)
        super().__init__(self.summary())

    def summary(self) -> str:
        """Render the issues as ``field: message`` pairs joined by commas."""
        return ", ".join(f"{field}: {message}" for field, message in self.issues)

    @property
    def fields(self) -> List[str]:
        return [field for field, _ in self.issues]


class StorageError(ThumbnailPipelineError):
    """Error raised for object storage failures."""


class NotFoundError(StorageError):
    """The requested object does not exist."""


class TransientError(StorageError):
    """A retryable transport failure. Not retried by this package."""


class ImageProcessingError(ThumbnailPipelineError):
    """Error raised when decoding, resizing or encoding an image fails."""


class UnsupportedFormatError(ImageProcessingError):
    """The resize engine was asked for a format it cannot produce."""


class RecordTimeoutError(ThumbnailPipelineError):
    """A notification record exceeded its processing time budget."""


class UploadRejectedError(ThumbnailPipelineError):
    """An upload request was rejected before anything was stored."""

    def __init__(self, message: str, code: str):
        self.code = code
        super().__init__(message)


class BatchUploadError(ThumbnailPipelineError):
    """One or more files of a multi-file upload failed to store."""

    def __init__(self, failures: List[Tuple[str, str]], total: int):
        self.failures = list(failures)
        self.total = total
        names = ", ".join(name for name, _ in self.failures)
        super().__init__(f"{len(self.failures)} of {total} uploads failed: {names}")

    def details(self) -> str:
        return "; ".join(f"{name}: {error}" for name, error in self.failures)
