"""Core components shared by the upload API and the resize worker."""

from .exceptions import (
    BatchUploadError,
    ConfigurationError,
    ImageProcessingError,
    NotFoundError,
    RecordTimeoutError,
    StorageError,
    ThumbnailPipelineError,
    TransientError,
    UnsupportedFormatError,
    UploadRejectedError,
    ValidationError,
)
from .logging_config import get_logger, setup_logger
from .models import (
    DEFAULT_CONFIG,
    BatchSummary,
    BatchUploadResult,
    ImageFormat,
    ImageUpload,
    RecordOutcome,
    RecordResult,
    ResizeConfig,
    SourceObject,
    StoredObject,
    UploadEvent,
)
from .resize import PillowResizeEngine, describe_image
from .storage import StorageClient
from .uploads import UploadLimits, UploadService
from .validation import PRESETS, from_metadata, to_metadata, validate
from .worker import ResizeWorker

__all__ = [
    "DEFAULT_CONFIG",
    "PRESETS",
    "BatchSummary",
    "BatchUploadResult",
    "ImageFormat",
    "ImageUpload",
    "RecordOutcome",
    "RecordResult",
    "ResizeConfig",
    "SourceObject",
    "StoredObject",
    "UploadEvent",
    "validate",
    "to_metadata",
    "from_metadata",
    "PillowResizeEngine",
    "describe_image",
    "StorageClient",
    "UploadLimits",
    "UploadService",
    "ResizeWorker",
    "setup_logger",
    "get_logger",
    "ThumbnailPipelineError",
    "ConfigurationError",
    "ValidationError",
    "StorageError",
    "NotFoundError",
    "TransientError",
    "ImageProcessingError",
    "UnsupportedFormatError",
    "RecordTimeoutError",
    "UploadRejectedError",
    "BatchUploadError",
]
