"""Protocol definitions for dependency injection and testability."""

from typing import Any, Dict, Protocol

from .models import ResizeConfig, StoredObject


class S3ClientProtocol(Protocol):
    """Protocol for the subset of S3 client operations the pipeline uses."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(self, **kwargs: Any) -> Dict[str, Any]:
        """Put object to S3 (Bucket, Key, Body, ContentType, Metadata)."""
        ...


class ResizeEngineProtocol(Protocol):
    """Protocol for the resize-and-encode capability."""

    def resize(self, image_bytes: bytes, config: ResizeConfig) -> bytes:
        """Fit the image inside the configured box and re-encode it."""
        ...


class ImageStoreProtocol(Protocol):
    """Protocol for the upload side of the storage client."""

    def store(
        self,
        data: bytes,
        original_filename: str,
        content_type: str,
        resize_config: Any = None,
    ) -> StoredObject:
        """Store an original upload."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        ...

