"""Shared data models for the thumbnail pipeline."""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class ImageFormat(str, Enum):
    """Output formats the resize engine can produce."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else self.value

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"

    @property
    def pillow_format(self) -> str:
        return self.value.upper()


class ResizeConfig(BaseModel):
    """Canonical, validated thumbnail parameters.

    Instances are immutable. Build them through
    ``thumbnail_pipeline.core.validation.validate`` when the input is
    untrusted; that function owns string coercion and error reporting.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    width: int = Field(default=300, ge=50, le=2000)
    height: int = Field(default=300, ge=50, le=2000)
    quality: int = Field(default=85, ge=1, le=100)
    format: ImageFormat = ImageFormat.JPEG

    @property
    def size_label(self) -> str:
        return f"{self.width}x{self.height}"


DEFAULT_CONFIG = ResizeConfig()


class StoredObject(BaseModel):
    """An object written to storage."""

    key: str
    bucket: str
    content_type: str
    size_bytes: int
    metadata: Dict[str, str] = Field(default_factory=dict)
    location: str = ""
    etag: str = ""


class SourceObject(BaseModel):
    """An object read back from storage: body plus user metadata."""

    bucket: str
    key: str
    body: bytes
    content_type: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)


class ImageUpload(BaseModel):
    """One file received by the upload service."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class UploadEvent(BaseModel):
    """A storage "object created" notification, with the key already decoded."""

    bucket_name: str
    object_key: str
    notification_type: str = ""


class RecordOutcome(str, Enum):
    """Terminal states of a notification record."""

    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RecordResult(BaseModel):
    """Result of processing a single notification record."""

    bucket: str = ""
    source_key: str = ""
    outcome: RecordOutcome = RecordOutcome.FAILED
    dest_key: str = ""
    reason: str = ""
    error: str = ""
    processing_time: float = 0.0


class BatchSummary(BaseModel):
    """Aggregate outcome of a notification batch."""

    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    results: List[RecordResult] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[RecordResult]) -> "BatchSummary":
        counts = {outcome: 0 for outcome in RecordOutcome}
        for result in results:
            counts[result.outcome] += 1
        return cls(
            total=len(results),
            succeeded=counts[RecordOutcome.SUCCEEDED],
            skipped=counts[RecordOutcome.SKIPPED],
            failed=counts[RecordOutcome.FAILED],
            results=results,
        )


class BatchUploadResult(BaseModel):
    """Summary returned for a multi-file upload."""

    batch_id: str
    count: int
    total_bytes: int
    objects: List[StoredObject] = Field(default_factory=list)
