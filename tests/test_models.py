"""Tests for the shared data models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from thumbnail_pipeline.core.models import (
    DEFAULT_CONFIG,
    BatchSummary,
    ImageFormat,
    ImageUpload,
    RecordOutcome,
    RecordResult,
    ResizeConfig,
)


class TestImageFormat:
    """Tests for ImageFormat."""

    @pytest.mark.parametrize(
        "image_format,extension,content_type",
        [
            (ImageFormat.JPEG, "jpg", "image/jpeg"),
            (ImageFormat.PNG, "png", "image/png"),
            (ImageFormat.WEBP, "webp", "image/webp"),
        ],
    )
    def test_extension_and_content_type(self, image_format, extension, content_type):
        assert image_format.extension == extension
        assert image_format.content_type == content_type

    def test_pillow_format(self):
        assert ImageFormat.WEBP.pillow_format == "WEBP"

    def test_is_a_string(self):
        assert ImageFormat("png") is ImageFormat.PNG
        assert ImageFormat.PNG == "png"


class TestResizeConfig:
    """Tests for ResizeConfig."""

    def test_defaults(self):
        config = ResizeConfig()

        assert config.width == 300
        assert config.height == 300
        assert config.quality == 85
        assert config.format is ImageFormat.JPEG
        assert config == DEFAULT_CONFIG

    def test_is_immutable(self):
        config = ResizeConfig()

        with pytest.raises(PydanticValidationError):
            config.width = 500

    def test_bounds_enforced(self):
        with pytest.raises(PydanticValidationError):
            ResizeConfig(width=49)
        with pytest.raises(PydanticValidationError):
            ResizeConfig(height=2001)
        with pytest.raises(PydanticValidationError):
            ResizeConfig(quality=0)

    def test_boundary_values_accepted(self):
        config = ResizeConfig(width=50, height=2000, quality=100)

        assert (config.width, config.height, config.quality) == (50, 2000, 100)

    def test_size_label(self):
        assert ResizeConfig(width=640, height=480).size_label == "640x480"

    def test_equal_configs_hash_equal(self):
        assert hash(ResizeConfig(width=100)) == hash(ResizeConfig(width=100))


class TestImageUpload:
    def test_size_is_byte_length(self):
        upload = ImageUpload(filename="a.jpg", content_type="image/jpeg", data=b"12345")

        assert upload.size == 5


class TestBatchSummary:
    """Tests for BatchSummary aggregation."""

    def test_from_results_counts_outcomes(self):
        results = [
            RecordResult(source_key="uploads/a.jpg", outcome=RecordOutcome.SUCCEEDED),
            RecordResult(source_key="uploads/b.jpg", outcome=RecordOutcome.FAILED),
            RecordResult(source_key="thumbnails/c.jpg", outcome=RecordOutcome.SKIPPED),
            RecordResult(source_key="uploads/d.jpg", outcome=RecordOutcome.SUCCEEDED),
        ]

        summary = BatchSummary.from_results(results)

        assert summary.total == 4
        assert summary.succeeded == 2
        assert summary.failed == 1
        assert summary.skipped == 1
        assert summary.results == results

    def test_from_empty_results(self):
        summary = BatchSummary.from_results([])

        assert summary.total == 0
        assert summary.results == []

    def test_serializes_outcomes_as_strings(self):
        summary = BatchSummary.from_results(
            [RecordResult(outcome=RecordOutcome.SKIPPED, reason="temporary file")]
        )

        dumped = summary.model_dump(mode="json")

        assert dumped["results"][0]["outcome"] == "skipped"
        assert dumped["results"][0]["reason"] == "temporary file"
