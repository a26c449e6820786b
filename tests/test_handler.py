"""Tests for the event-trigger entry point."""

import json

import pytest

from thumbnail_pipeline import handler as handler_module
from thumbnail_pipeline.config import Settings
from thumbnail_pipeline.core.exceptions import ConfigurationError
from thumbnail_pipeline.core.factories import PipelineFactory
from thumbnail_pipeline.testing.fakes import (
    FakeLogger,
    create_test_image,
    s3_event,
    setup_test_s3_environment,
)


@pytest.fixture(autouse=True)
def fresh_worker():
    handler_module.reset_worker()
    yield
    handler_module.reset_worker()


@pytest.fixture
def fake_s3():
    return setup_test_s3_environment("test-bucket")


@pytest.fixture
def installed_worker(fake_s3):
    settings = Settings(_env_file=None, bucket_name="test-bucket", worker_concurrency=2)
    worker = PipelineFactory.create_worker(settings, s3_client=fake_s3, logger=FakeLogger())
    handler_module._worker = worker
    return worker


class TestHandler:
    def test_processes_records_and_returns_summary(self, installed_worker, fake_s3):
        event = {
            "Records": [
                s3_event("test-bucket", "uploads/1111-landscape.jpg"),
                s3_event("test-bucket", "thumbnails/1111-landscape-thumb-2024-05-01T10-20-30-123Z.jpg"),
                s3_event("test-bucket", "uploads/4444-notes.txt"),
            ]
        }

        result = handler_module.handler(event, None)

        assert result["total"] == 3
        assert result["succeeded"] == 1
        assert result["skipped"] == 1
        assert result["failed"] == 1
        assert [r["outcome"] for r in result["results"]] == ["succeeded", "skipped", "failed"]
        assert json.dumps(result)

    def test_sqs_wrapped_records(self, installed_worker, fake_s3):
        body = {"Records": [s3_event("test-bucket", "uploads/3333-plain.jpg")]}
        event = {"Records": [{"eventSource": "aws:sqs", "body": json.dumps(body)}]}

        result = handler_module.handler(event, None)

        assert result["succeeded"] == 1
        assert fake_s3.get_bucket("test-bucket").list_objects("thumbnails/")

    def test_event_without_records(self, installed_worker):
        assert handler_module.handler({}, None)["total"] == 0
        assert handler_module.handler({"Records": "junk"}, None)["total"] == 0

    def test_worker_is_reused(self, installed_worker, fake_s3):
        fake_s3.get_bucket("test-bucket").add_object("uploads/5555-x.jpg", create_test_image(60, 60))

        handler_module.handler({"Records": [s3_event("test-bucket", "uploads/5555-x.jpg")]}, None)

        assert handler_module.get_worker() is installed_worker

    def test_missing_bucket_fails_the_invocation(self, monkeypatch, tmp_path):
        monkeypatch.delenv("BUCKET_NAME", raising=False)
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError, match="BUCKET_NAME"):
            handler_module.handler({"Records": []}, None)
