"""Upload service: validates incoming images and stores them with their resize config."""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .exceptions import BatchUploadError, UploadRejectedError
from .models import BatchUploadResult, ImageUpload, ResizeConfig, StoredObject
from .protocols import ImageStoreProtocol, LoggerProtocol
from .validation import validate

ALLOWED_CONTENT_TYPES: Tuple[str, ...] = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
)
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
MAX_FILES = 9


@dataclass(frozen=True)
class UploadLimits:
    """Per-request limits enforced before anything reaches storage."""

    max_file_size: int = MAX_FILE_SIZE_BYTES
    max_files: int = MAX_FILES
    allowed_content_types: Tuple[str, ...] = ALLOWED_CONTENT_TYPES

    @property
    def max_file_size_label(self) -> str:
        megabytes, remainder = divmod(self.max_file_size, 1024 * 1024)
        if megabytes and not remainder:
            return f"{megabytes}MB"
        return f"{self.max_file_size} bytes"


def normalize_content_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


class UploadService:
    """Store originals under ``uploads/`` with the validated resize config attached."""

    def __init__(
        self,
        storage: ImageStoreProtocol,
        logger: LoggerProtocol,
        limits: UploadLimits = UploadLimits(),
        max_workers: int = 4,
    ):
        self._storage = storage
        self._logger = logger
        self._limits = limits
        self._max_workers = max(1, max_workers)

    @property
    def limits(self) -> UploadLimits:
        return self._limits

    def check_count(self, count: int) -> None:
        if count > self._limits.max_files:
            raise UploadRejectedError(
                f"Maximum {self._limits.max_files} images allowed", "TOO_MANY_IMAGES"
            )

    def check_part(self, filename: str, content_type: Optional[str], size: Optional[int]) -> None:
        """
        Reject a file part by its headers, before its body is read.

        ``size`` may be unknown; callers then bound the read themselves and
        ``check_file`` catches the overflow.
        """
        if normalize_content_type(content_type) not in self._limits.allowed_content_types:
            raise UploadRejectedError(
                "Only image files are allowed (JPEG, PNG, GIF, WebP)",
                "INVALID_FILE_TYPE",
            )
        if size is not None and size > self._limits.max_file_size:
            raise UploadRejectedError(
                f"File {filename} exceeds the {self._limits.max_file_size_label} limit",
                "FILE_TOO_LARGE",
            )

    def check_file(self, upload: ImageUpload) -> None:
        """Reject files with a disallowed MIME type or over the size limit."""
        self.check_part(upload.filename, upload.content_type, upload.size)

    def upload_single(
        self, upload: Optional[ImageUpload], raw_config: Optional[Mapping[str, Any]]
    ) -> StoredObject:
        """
        Validate and store one image.

        Raises:
            UploadRejectedError: No file, bad MIME type or file too large.
            ValidationError: The resize parameters are invalid.
            StorageError: The write failed.
        """
        if upload is None:
            raise UploadRejectedError("No image file provided", "IMAGE_REQUIRED")
        self.check_file(upload)
        config = validate(raw_config)

        stored = self._store(upload, config)
        self._logger.info(
            f"Stored {upload.filename} as {stored.key} ({stored.size_bytes} bytes)"
        )
        return stored

    def upload_many(
        self,
        uploads: Sequence[ImageUpload],
        raw_config: Optional[Mapping[str, Any]],
    ) -> BatchUploadResult:
        """
        Validate and store several images sharing one resize config.

        Writes run concurrently and all of them are awaited. If any write
        fails, ``BatchUploadError`` names every file that failed; files that
        were written stay written.
        """
        if not uploads:
            raise UploadRejectedError("No image files provided", "IMAGES_REQUIRED")
        self.check_count(len(uploads))
        for upload in uploads:
            self.check_file(upload)
        config = validate(raw_config)

        stored: List[StoredObject] = []
        failures: List[Tuple[str, str]] = []
        workers = min(self._max_workers, len(uploads))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                (upload, executor.submit(self._store, upload, config))
                for upload in uploads
            ]
            for upload, future in futures:
                try:
                    stored.append(future.result())
                except Exception as e:  # noqa: BLE001
                    self._logger.error(f"Failed to store {upload.filename}: {e}")
                    failures.append((upload.filename, str(e)))

        if failures:
            raise BatchUploadError(failures, total=len(uploads))

        result = BatchUploadResult(
            batch_id=f"batch-{int(time.time() * 1000)}",
            count=len(stored),
            total_bytes=sum(upload.size for upload in uploads),
            objects=stored,
        )
        self._logger.info(
            f"Stored batch {result.batch_id}: {result.count} images, "
            f"{result.total_bytes} bytes"
        )
        return result

    def _store(self, upload: ImageUpload, config: ResizeConfig) -> StoredObject:
        return self._storage.store(
            upload.data,
            upload.filename,
            normalize_content_type(upload.content_type),
            config,
        )
