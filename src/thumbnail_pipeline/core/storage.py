"""S3 storage client: key naming, metadata encoding and object I/O."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, TYPE_CHECKING
from urllib.parse import quote

from .error_handling import translate_s3_errors
from .exceptions import ConfigurationError
from .keys import derived_key, iso_timestamp, sanitize_filename, upload_key
from .models import ImageFormat, ResizeConfig, SourceObject, StoredObject
from .protocols import LoggerProtocol
from .validation import to_metadata

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
else:
    S3Client = Any

# Bookkeeping metadata written next to the resize config.
ORIGINAL_NAME_KEY = "originalName"
UPLOADED_AT_KEY = "uploadedAt"

# Provenance metadata written on derived objects.
ORIGINAL_IMAGE_KEY = "originalImageKey"
PROCESSED_AT_KEY = "processedAt"
PROCESSED_BY_KEY = "processedBy"
PROCESSED_BY_TAG = "thumbnail-pipeline-worker"


def _header_safe(value: str) -> str:
    # Metadata travels as HTTP headers, which only carry ASCII.
    return value if value.isascii() else quote(value)


class StorageClient:
    """Thin wrapper over an S3 client for the upload/resize pipeline.

    Every call performs network I/O. There is no caching and no retry beyond
    what the SDK does itself; failures are translated into the storage error
    taxonomy and propagate to the caller.
    """

    def __init__(
        self,
        s3_client: S3Client,
        bucket_name: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        if not bucket_name:
            raise ConfigurationError("BUCKET_NAME is required")
        self._s3_client = s3_client
        self._bucket = bucket_name
        self._region = region
        self._endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self._logger = logger

    @property
    def bucket(self) -> str:
        return self._bucket

    def location(self, key: str, bucket: Optional[str] = None) -> str:
        """Public URL of an object."""
        bucket = bucket or self._bucket
        if self._endpoint_url:
            return f"{self._endpoint_url}/{bucket}/{quote(key)}"
        return f"https://{bucket}.s3.{self._region}.amazonaws.com/{quote(key)}"

    def store(
        self,
        data: bytes,
        original_filename: str,
        content_type: str,
        resize_config: Optional[ResizeConfig] = None,
    ) -> StoredObject:
        """
        Store an original upload under ``uploads/``.

        Args:
            data: Raw file bytes
            original_filename: Name supplied by the client
            content_type: MIME type supplied by the client
            resize_config: Thumbnail parameters to embed as metadata

        Returns:
            The stored object, including its location and ETag
        """
        key = upload_key(original_filename)
        metadata = {
            ORIGINAL_NAME_KEY: _header_safe(sanitize_filename(original_filename)),
            UPLOADED_AT_KEY: iso_timestamp(),
        }
        if resize_config is not None:
            metadata.update(to_metadata(resize_config))

        return self._put(key, data, content_type, metadata)

    def store_derived(
        self,
        data: bytes,
        original_key: str,
        image_format: ImageFormat,
        resize_config: Optional[ResizeConfig] = None,
    ) -> StoredObject:
        """Store a thumbnail under ``thumbnails/`` with provenance metadata."""
        image_format = ImageFormat(image_format)
        now = datetime.now(timezone.utc)
        key = derived_key(original_key, image_format, now)
        metadata = {
            ORIGINAL_IMAGE_KEY: _header_safe(original_key),
            PROCESSED_AT_KEY: iso_timestamp(now),
            PROCESSED_BY_KEY: PROCESSED_BY_TAG,
        }
        if resize_config is not None:
            metadata["thumbnailSize"] = resize_config.size_label
            metadata["quality"] = str(resize_config.quality)

        return self._put(key, data, image_format.content_type, metadata)

    def fetch(self, bucket: str, key: str) -> bytes:
        """Download the full body of an object."""
        return self.fetch_object(bucket, key).body

    @translate_s3_errors
    def fetch_object(self, bucket: str, key: str) -> SourceObject:
        """Download an object together with its content type and user metadata."""
        if self._logger:
            self._logger.debug(f"Downloading s3://{bucket}/{key}")
        response = self._s3_client.get_object(Bucket=bucket, Key=key)
        body = response["Body"].read()
        return SourceObject(
            bucket=bucket,
            key=key,
            body=body,
            content_type=response.get("ContentType", "") or "",
            metadata=dict(response.get("Metadata") or {}),
        )

    @translate_s3_errors
    def _put(
        self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]
    ) -> StoredObject:
        if self._logger:
            self._logger.debug(f"Uploading s3://{self._bucket}/{key}")
        response = self._s3_client.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=metadata,
        )
        return StoredObject(
            key=key,
            bucket=self._bucket,
            content_type=content_type,
            size_bytes=len(data),
            metadata=metadata,
            location=self.location(key),
            etag=str(response.get("ETag", "")).strip('"'),
        )
