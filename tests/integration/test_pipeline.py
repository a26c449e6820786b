"""Integration tests for the complete upload → resize pipeline."""

from urllib.parse import quote_plus

import pytest
from fastapi.testclient import TestClient

from thumbnail_pipeline.api import create_app
from thumbnail_pipeline.config import Settings
from thumbnail_pipeline.core.factories import PipelineFactory
from thumbnail_pipeline.core.models import RecordOutcome
from thumbnail_pipeline.core.resize import describe_image
from thumbnail_pipeline.testing.fakes import (
    FakeLogger,
    FakeS3Client,
    create_test_image,
    s3_event,
)

BUCKET = "pipeline-bucket"


@pytest.fixture
def fake_s3():
    client = FakeS3Client()
    client.create_bucket(BUCKET)
    return client


@pytest.fixture
def settings():
    return Settings(_env_file=None, bucket_name=BUCKET, worker_concurrency=2)


@pytest.fixture
def api(fake_s3, settings):
    service = PipelineFactory.create_upload_service(settings, s3_client=fake_s3, logger=FakeLogger())
    app = create_app(settings=settings, upload_service=service)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def worker(fake_s3, settings):
    return PipelineFactory.create_worker(settings, s3_client=fake_s3, logger=FakeLogger())


def notify(worker, *keys):
    """Deliver notifications the way S3 does, with URL-encoded keys."""
    return worker.handle_batch([s3_event(BUCKET, quote_plus(key, safe="/")) for key in keys])


class TestPipelineIntegration:
    """End-to-end tests across the upload API and the resize worker."""

    def test_upload_without_config_uses_defaults_and_never_upscales(self, api, worker, fake_s3):
        response = api.post(
            "/api/upload/single",
            files={"image": ("name.jpg", create_test_image(100, 100), "image/jpeg")},
        )
        assert response.status_code == 200
        key = response.json()["data"]["originalImage"]["key"]

        original = fake_s3.get_bucket(BUCKET).get_object(key)
        assert key.startswith("uploads/") and key.endswith("-name.jpg")
        assert original.metadata["thumbnailWidth"] == "300"
        assert original.metadata["thumbnailHeight"] == "300"
        assert original.metadata["thumbnailQuality"] == "85"
        assert original.metadata["thumbnailFormat"] == "jpeg"

        summary = notify(worker, key)

        assert summary.succeeded == 1
        result = summary.results[0]
        assert result.dest_key.startswith("thumbnails/")
        assert "-name-thumb-" in result.dest_key
        assert result.dest_key.endswith(".jpg")
        info = describe_image(fake_s3.get_bucket(BUCKET).get_object(result.dest_key).body)
        assert info["width"] <= 100 and info["height"] <= 100

    def test_upload_with_config_produces_webp(self, api, worker, fake_s3):
        response = api.post(
            "/api/upload/single",
            files={"image": ("wide.jpg", create_test_image(640, 320), "image/jpeg")},
            data={"width": "150", "height": "150", "format": "webp", "quality": "50"},
        )
        key = response.json()["data"]["originalImage"]["key"]

        summary = notify(worker, key)

        dest_key = summary.results[0].dest_key
        derived = fake_s3.get_bucket(BUCKET).get_object(dest_key)
        info = describe_image(derived.body)
        assert dest_key.endswith(".webp")
        assert derived.content_type == "image/webp"
        assert info["format"] == "WEBP"
        assert info["width"] <= 150 and info["height"] <= 150

    def test_non_image_upload_is_rejected(self, api, fake_s3):
        response = api.post(
            "/api/upload/single",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_FILE_TYPE"
        assert fake_s3.put_calls == []

    def test_thumbnail_event_is_skipped_without_io(self, worker, fake_s3):
        summary = notify(worker, "thumbnails/x-thumb-2024.jpg")

        assert summary.skipped == 1
        assert fake_s3.operation_count == 0

    def test_derived_objects_do_not_loop(self, api, worker, fake_s3):
        response = api.post(
            "/api/upload/single",
            files={"image": ("loop.png", create_test_image(200, 200, fmt="PNG"), "image/png")},
        )
        key = response.json()["data"]["originalImage"]["key"]
        first = notify(worker, key)
        operations = fake_s3.operation_count

        second = notify(worker, first.results[0].dest_key)

        assert second.results[0].outcome is RecordOutcome.SKIPPED
        assert fake_s3.operation_count == operations

    def test_batch_upload_then_batch_resize(self, api, worker, fake_s3):
        files = [
            ("images", (f"photo {i}.jpg", create_test_image(300 + i * 10, 200), "image/jpeg"))
            for i in range(3)
        ]
        response = api.post("/api/upload/multiple", files=files, data={"preset": "small"})
        assert response.json()["data"]["count"] == 3

        keys = [obj.key for obj in fake_s3.get_bucket(BUCKET).list_objects("uploads/")]
        summary = notify(worker, *keys)

        assert summary.succeeded == 3
        for result in summary.results:
            info = describe_image(fake_s3.get_bucket(BUCKET).get_object(result.dest_key).body)
            assert info["width"] <= 150 and info["height"] <= 150
