"""Tests for object key conventions."""

import re
from datetime import datetime, timezone

import pytest

from thumbnail_pipeline.core.keys import (
    THUMBNAILS_PREFIX,
    UPLOADS_PREFIX,
    decode_event_key,
    derived_key,
    iso_timestamp,
    key_timestamp,
    sanitize_filename,
    skip_reason,
    upload_key,
)
from thumbnail_pipeline.core.models import ImageFormat

FIXED_NOW = datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=timezone.utc)


class TestTimestamps:
    def test_iso_timestamp_has_milliseconds(self):
        assert iso_timestamp(FIXED_NOW) == "2024-05-01T10:20:30.123Z"

    def test_key_timestamp_is_key_safe(self):
        assert key_timestamp(FIXED_NOW) == "2024-05-01T10-20-30-123Z"


class TestUploadKey:
    """Tests for original upload keys."""

    def test_layout(self):
        key = upload_key("cat.png", token="abc")

        assert key == "uploads/abc-cat.png"

    def test_default_token_is_uuid4(self):
        key = upload_key("cat.png")

        assert re.fullmatch(
            r"uploads/[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}-cat\.png",
            key,
        )

    def test_keys_are_unique(self):
        assert upload_key("cat.png") != upload_key("cat.png")

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("../../etc/passwd", "passwd"),
            ("C:\\Users\\me\\photo.jpg", "photo.jpg"),
            ("", "upload"),
            ("dir/", "upload"),
        ],
    )
    def test_filename_is_reduced_to_basename(self, filename, expected):
        assert sanitize_filename(filename) == expected
        assert upload_key(filename, token="t").count("/") == 1


class TestDerivedKey:
    """Tests for thumbnail keys."""

    def test_layout(self):
        key = derived_key("uploads/abc-cat.png", ImageFormat.JPEG, FIXED_NOW)

        assert key == "thumbnails/abc-cat-thumb-2024-05-01T10-20-30-123Z.jpg"

    @pytest.mark.parametrize(
        "image_format,extension",
        [(ImageFormat.JPEG, "jpg"), (ImageFormat.PNG, "png"), (ImageFormat.WEBP, "webp")],
    )
    def test_extension_follows_format(self, image_format, extension):
        key = derived_key("uploads/abc-cat.png", image_format, FIXED_NOW)

        assert key.endswith(f".{extension}")

    def test_only_last_extension_is_removed(self):
        key = derived_key("uploads/x-archive.tar.gz", ImageFormat.PNG, FIXED_NOW)

        assert key.startswith("thumbnails/x-archive.tar-thumb-")

    @pytest.mark.parametrize(
        "original_key",
        [
            "uploads/abc-cat.png",
            "uploads/abc-noext",
            "uploads/nested/dir/abc-cat.jpeg",
            "uploads/abc-uploads-cat.png",
        ],
    )
    def test_derived_keys_never_trigger_processing(self, original_key):
        for image_format in ImageFormat:
            key = derived_key(original_key, image_format)

            assert key.startswith(THUMBNAILS_PREFIX)
            assert not key.startswith(UPLOADS_PREFIX)
            assert skip_reason(key) is not None


class TestDecodeEventKey:
    def test_plus_is_space_and_percent_is_decoded(self):
        assert decode_event_key("uploads/abc-my+cat%21.png") == "uploads/abc-my cat!.png"

    def test_empty(self):
        assert decode_event_key("") == ""


class TestSkipReason:
    """Tests for the worker's key filter."""

    def test_uploads_are_processed(self):
        assert skip_reason("uploads/abc-cat.png") is None

    def test_user_filenames_mentioning_thumb_are_processed(self):
        assert skip_reason("uploads/abc-my-thumb-drive.jpg") is None

    @pytest.mark.parametrize(
        "key,reason",
        [
            ("thumbnails/abc-cat-thumb-2024-05-01T10-20-30-123Z.jpg", "not under uploads/ prefix"),
            ("other/abc-cat.png", "not under uploads/ prefix"),
            ("uploads/abc-cat.png.tmp", "temporary file"),
            ("uploads/abc-cat-thumb-2024-05-01T10-20-30-123Z.jpg", "already a derived object"),
        ],
    )
    def test_skipped_keys(self, key, reason):
        assert skip_reason(key) == reason
