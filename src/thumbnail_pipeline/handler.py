"""
Event-trigger entry point for the resize worker.

Invoked with a batch of storage notifications, either native S3 records or
SQS messages wrapping them:

    {"Records": [{"eventName": "ObjectCreated:Put",
                  "s3": {"bucket": {"name": "..."}, "object": {"key": "..."}}}]}

Environment variables:
  BUCKET_NAME             bucket thumbnails are written to (required)
  AWS_REGION              region of the bucket
  WORKER_CONCURRENCY      records processed in parallel
  RECORD_TIMEOUT_SECONDS  time budget per record
"""

from typing import Any, Dict, Optional

from .config import Settings
from .core.factories import PipelineFactory
from .core.logging_config import get_logger
from .core.worker import ResizeWorker

logger = get_logger("handler")

_worker: Optional[ResizeWorker] = None


def get_worker(settings: Optional[Settings] = None) -> ResizeWorker:
    """Build the worker once per process and reuse it across invocations."""
    global _worker
    if _worker is None:
        _worker = PipelineFactory.create_worker(settings or Settings())
    return _worker


def reset_worker() -> None:
    global _worker
    _worker = None


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Process one notification batch.

    Record failures are reported in the returned summary and never raised.
    A missing BUCKET_NAME raises ``ConfigurationError`` and fails the
    invocation.
    """
    worker = get_worker()
    records = event.get("Records") if isinstance(event, dict) else None
    if not isinstance(records, list):
        records = []
    request_id = getattr(context, "aws_request_id", None)
    logger.info(f"Received {len(records)} record(s) (request_id={request_id})")

    summary = worker.handle_batch(records)
    return summary.model_dump(mode="json")
