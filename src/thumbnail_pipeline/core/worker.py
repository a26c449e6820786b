"""Resize worker: turns storage notifications into thumbnails.

Every record is handled on its own. A record ends up skipped, succeeded or
failed; failures are logged and the batch moves on. Nothing is retried and
nothing is dead-lettered, so an upload that never gets a thumbnail is only
visible in the logs.
"""

import json
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, List, Optional

from .error_handling import BatchOperationContextManager
from .exceptions import RecordTimeoutError
from .keys import decode_event_key, skip_reason
from .models import BatchSummary, RecordOutcome, RecordResult, StoredObject, UploadEvent
from .observability import LogContext
from .protocols import LoggerProtocol, ResizeEngineProtocol
from .storage import PROCESSED_BY_KEY, PROCESSED_BY_TAG, StorageClient
from .validation import config_from_metadata_or_default, metadata_value

CREATED_EVENT_PREFIX = "ObjectCreated"


@dataclass
class Deadline:
    """Time budget for one record.

    Checked by the pipeline thread before each expensive phase so a record
    that was already abandoned never writes a thumbnail.
    """

    seconds: float
    clock: Callable[[], float] = time.monotonic
    started: float = field(init=False)

    def __post_init__(self):
        self.started = self.clock()

    def elapsed(self) -> float:
        return self.clock() - self.started

    def check(self, phase: str) -> None:
        if self.elapsed() > self.seconds:
            raise RecordTimeoutError(
                f"Record exceeded its {self.seconds:g}s budget before {phase}"
            )


def iter_notification_records(records: Any) -> Iterator[Any]:
    """Flatten a batch, unwrapping SQS envelopes that carry S3 notifications."""
    if not isinstance(records, (list, tuple)):
        return
    for record in records:
        if isinstance(record, dict) and record.get("eventSource") == "aws:sqs":
            try:
                body = json.loads(record.get("body") or "{}")
            except (TypeError, ValueError):
                yield record
                continue
            inner = body.get("Records") if isinstance(body, dict) else None
            if isinstance(inner, list):
                yield from inner
            else:
                yield record
        else:
            yield record


def parse_record(record: Any) -> UploadEvent:
    """
    Parse one notification record.

    Accepts native S3 records (``s3.bucket.name`` / ``s3.object.key``) and
    flat records (``bucketName`` / ``objectKey``).

    Raises:
        ValueError: If the record does not name a bucket and a key.
    """
    if not isinstance(record, dict):
        raise ValueError(f"expected an object, got {type(record).__name__}")

    if isinstance(record.get("s3"), dict):
        s3_info = record["s3"]
        bucket = (s3_info.get("bucket") or {}).get("name")
        key = (s3_info.get("object") or {}).get("key")
        notification_type = record.get("eventName", "")
    else:
        bucket = record.get("bucketName")
        key = record.get("objectKey")
        notification_type = record.get("notificationType", "")

    if not isinstance(bucket, str) or not bucket:
        raise ValueError("missing bucket name")
    if not isinstance(key, str) or not key:
        raise ValueError("missing object key")

    return UploadEvent(
        bucket_name=bucket,
        object_key=decode_event_key(key),
        notification_type=str(notification_type or ""),
    )


class ResizeWorker:
    """Fetch, resize and store for each "object created" notification."""

    def __init__(
        self,
        storage: StorageClient,
        engine: ResizeEngineProtocol,
        logger: LoggerProtocol,
        record_timeout: float = 60.0,
        max_workers: int = 4,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._storage = storage
        self._engine = engine
        self._logger = logger
        self._record_timeout = record_timeout
        self._max_workers = max(1, max_workers)
        self._clock = clock

    def process_record(self, record: Any) -> RecordResult:
        """Process one raw notification record. Never raises."""
        try:
            event = parse_record(record)
        except ValueError as e:
            self._logger.warning(f"Skipping malformed notification record: {e}")
            return RecordResult(
                outcome=RecordOutcome.SKIPPED, reason=f"malformed record: {e}"
            )
        return self.process_event(event)

    def process_event(self, event: UploadEvent) -> RecordResult:
        """Run the filter → fetch → resize → store pipeline for one event.

        The pipeline runs on its own thread and is waited on for at most
        ``record_timeout`` seconds. A record that overruns is failed right
        away; its thread is abandoned and its ``Deadline`` keeps it from
        writing a thumbnail afterwards.
        """
        start_time = time.time()
        bucket, key = event.bucket_name, event.object_key
        result = RecordResult(bucket=bucket, source_key=key)
        log_context = LogContext(
            correlation_id=f"rec_{uuid.uuid4().hex[:12]}",
            operation="process_record",
            component="resize_worker",
        ).with_metadata(bucket=bucket, key=key)

        if event.notification_type and not event.notification_type.startswith(
            CREATED_EVENT_PREFIX
        ):
            return self._skip(
                result,
                f"not an object-created event ({event.notification_type})",
                log_context,
            )

        reason = skip_reason(key)
        if reason:
            return self._skip(result, reason, log_context)

        deadline = Deadline(self._record_timeout, self._clock)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="resize-record")
        try:
            future = executor.submit(self._generate, bucket, key, log_context, deadline)
            done, _ = wait([future], timeout=self._record_timeout)
            if not done:
                raise RecordTimeoutError(
                    f"Record exceeded its {self._record_timeout:g}s budget"
                )
            stored = future.result()
            if stored is None:
                return self._skip(result, "object was written by the worker", log_context)

            result.outcome = RecordOutcome.SUCCEEDED
            result.dest_key = stored.key
            result.processing_time = time.time() - start_time
            self._logger.info(
                "Thumbnail generated",
                log_context,
                dest_key=stored.key,
                processing_time_ms=round(result.processing_time * 1000, 1),
            )

        except Exception as e:  # noqa: BLE001
            result.outcome = RecordOutcome.FAILED
            result.error = f"{type(e).__name__}: {e}"
            result.processing_time = time.time() - start_time
            self._logger.error(
                "Thumbnail generation failed", log_context.with_metadata(error=str(e))
            )
        finally:
            executor.shutdown(wait=False)

        return result

    def _generate(
        self, bucket: str, key: str, log_context: LogContext, deadline: Deadline
    ) -> Optional[StoredObject]:
        """Fetch, resize and store one source. Returns None for worker-written objects."""
        self._logger.debug("Downloading source image", log_context.with_operation("fetch"))
        source = self._storage.fetch_object(bucket, key)

        if metadata_value(source.metadata, PROCESSED_BY_KEY) == PROCESSED_BY_TAG:
            return None

        config = config_from_metadata_or_default(source.metadata, self._logger)
        deadline.check("resize")

        self._logger.debug(
            f"Resizing to fit {config.size_label} as {config.format.value}",
            log_context.with_operation("resize"),
        )
        thumbnail = self._engine.resize(source.body, config)
        deadline.check("upload")

        self._logger.debug("Uploading thumbnail", log_context.with_operation("store"))
        return self._storage.store_derived(thumbnail, key, config.format, config)

    def process_records(self, records: Iterable[Any]) -> List[RecordResult]:
        """Process records on a bounded thread pool, keeping input order."""
        flat = list(iter_notification_records(records))
        if not flat:
            return []
        if self._max_workers == 1 or len(flat) == 1:
            return [self.process_record(record) for record in flat]

        results: List[RecordResult] = []
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(flat))) as executor:
            futures = [executor.submit(self.process_record, record) for record in flat]
            for future in futures:
                try:
                    results.append(future.result())
                except Exception as e:  # noqa: BLE001
                    results.append(
                        RecordResult(outcome=RecordOutcome.FAILED, error=str(e))
                    )
        return results

    def handle_batch(self, records: Iterable[Any]) -> BatchSummary:
        """Process a notification batch. Never raises past the batch boundary."""
        with BatchOperationContextManager("Notification batch", self._logger) as batch:
            results = self.process_records(records)
            for result in results:
                if result.outcome is RecordOutcome.FAILED:
                    batch.add_error(result.error, result.source_key or "unknown record")

        summary = BatchSummary.from_results(results)
        self._logger.info(
            f"Batch done: {summary.succeeded} succeeded, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return summary

    def _skip(self, result: RecordResult, reason: str, context: LogContext) -> RecordResult:
        result.outcome = RecordOutcome.SKIPPED
        result.reason = reason
        self._logger.info(f"Skipping record: {reason}", context)
        return result
