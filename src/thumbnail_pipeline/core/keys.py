"""Object key conventions shared by the uploader and the resize worker.

Originals live under ``uploads/`` and thumbnails under ``thumbnails/``. The
worker only ever reacts to ``uploads/`` keys, which is what keeps it from
reprocessing its own output.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import unquote_plus

from .models import ImageFormat

UPLOADS_PREFIX = "uploads/"
THUMBNAILS_PREFIX = "thumbnails/"
TEMP_SUFFIX = ".tmp"
DERIVED_MARKER = "-thumb-"

# "-thumb-" followed by the timestamp written by derived_key().
DERIVED_MARKER_PATTERN = re.compile(
    re.escape(DERIVED_MARKER) + r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z"
)
_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 timestamp with millisecond precision, e.g. 2024-05-01T10:20:30.123Z."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def key_timestamp(now: Optional[datetime] = None) -> str:
    """The ISO timestamp made key-safe: colons and dots become dashes."""
    return iso_timestamp(now).replace(":", "-").replace(".", "-")


def sanitize_filename(filename: str) -> str:
    """Reduce a client supplied filename to its last path component."""
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or "upload"


def upload_key(original_filename: str, token: Optional[str] = None) -> str:
    """Key for an original upload: ``uploads/<uuid4>-<filename>``."""
    token = token or str(uuid.uuid4())
    return f"{UPLOADS_PREFIX}{token}-{sanitize_filename(original_filename)}"


def derived_key(
    original_key: str, image_format: ImageFormat, now: Optional[datetime] = None
) -> str:
    """
    Key for the thumbnail derived from ``original_key``.

    Args:
        original_key: Key of the source object, e.g. ``uploads/<uuid>-cat.png``
        image_format: Output format, which decides the extension
        now: Processing time (defaults to the current UTC time)

    Returns:
        ``thumbnails/<basename-without-extension>-thumb-<timestamp>.<ext>``
    """
    basename = original_key.rsplit("/", 1)[-1]
    stem = _EXTENSION_PATTERN.sub("", basename) or "unknown"
    return (
        f"{THUMBNAILS_PREFIX}{stem}{DERIVED_MARKER}{key_timestamp(now)}"
        f".{ImageFormat(image_format).extension}"
    )


def decode_event_key(raw_key: str) -> str:
    """Decode a key as delivered in a storage notification ('+' is a space)."""
    return unquote_plus(raw_key or "")


def skip_reason(key: str) -> Optional[str]:
    """
    Decide whether the worker must ignore a (decoded) key.

    Returns:
        A human readable reason to skip, or None when the key should be processed.
    """
    if not key.startswith(UPLOADS_PREFIX):
        return f"not under {UPLOADS_PREFIX} prefix"
    if key.endswith(TEMP_SUFFIX):
        return "temporary file"
    if DERIVED_MARKER_PATTERN.search(key):
        return "already a derived object"
    return None
