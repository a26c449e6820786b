"""Testing utilities and fakes for the thumbnail pipeline."""

from .fakes import (
    FakeLogger,
    FakeS3Client,
    S3Bucket,
    S3Object,
    create_test_image,
    image_size,
    s3_event,
    setup_test_s3_environment,
)

__all__ = [
    "FakeS3Client",
    "FakeLogger",
    "S3Object",
    "S3Bucket",
    "create_test_image",
    "image_size",
    "s3_event",
    "setup_test_s3_environment",
]
