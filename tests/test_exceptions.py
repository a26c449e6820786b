import pytest

from thumbnail_pipeline.core.exceptions import (
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


@pytest.mark.parametrize(
    "error_class",
    [
        ConfigurationError,
        ValidationError,
        StorageError,
        ImageProcessingError,
        RecordTimeoutError,
        UploadRejectedError,
        BatchUploadError,
    ],
)
def test_all_errors_share_the_base(error_class) -> None:
    assert issubclass(error_class, ThumbnailPipelineError)


def test_storage_taxonomy() -> None:
    assert issubclass(NotFoundError, StorageError)
    assert issubclass(TransientError, StorageError)
    assert issubclass(UnsupportedFormatError, ImageProcessingError)


def test_validation_error_lists_every_issue() -> None:
    error = ValidationError(
        [("width", "Width must be at least 50px"), ("format", "Format must be one of: jpeg, png, webp")]
    )

    assert error.fields == ["width", "format"]
    assert str(error) == (
        "width: Width must be at least 50px, "
        "format: Format must be one of: jpeg, png, webp"
    )


def test_upload_rejected_error_carries_code() -> None:
    error = UploadRejectedError("Maximum 9 images allowed", "TOO_MANY_IMAGES")

    assert error.code == "TOO_MANY_IMAGES"
    assert str(error) == "Maximum 9 images allowed"


def test_batch_upload_error_names_failed_files() -> None:
    error = BatchUploadError([("a.jpg", "Access Denied"), ("c.png", "timeout")], total=3)

    assert str(error) == "2 of 3 uploads failed: a.jpg, c.png"
    assert error.details() == "a.jpg: Access Denied; c.png: timeout"
    assert error.total == 3
