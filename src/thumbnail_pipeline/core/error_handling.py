# src/thumbnail_pipeline/core/error_handling.py

import functools
import logging

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .exceptions import (
    NotFoundError,
    StorageError,
    ThumbnailPipelineError,
    TransientError,
)

NOT_FOUND_S3_ERROR_CODES = ("NoSuchKey", "NotFound", "404", "NoSuchBucket")
RETRYABLE_S3_ERROR_CODES = (
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "Throttling",
    "SlowDown",
    "RequestTimeout",
    "InternalError",
    "ServiceUnavailable",
)
TRANSIENT_BOTOCORE_ERRORS = (
    EndpointConnectionError,
    ConnectionClosedError,
    ConnectTimeoutError,
    ReadTimeoutError,
)


def classify_client_error(exc: ClientError) -> StorageError:
    """Map a botocore ``ClientError`` onto the storage error taxonomy."""
    error = exc.response.get("Error", {})
    code = str(error.get("Code", ""))
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) or 0
    message = error.get("Message") or str(exc)

    if code in NOT_FOUND_S3_ERROR_CODES or status == 404:
        return NotFoundError(message)
    if code in RETRYABLE_S3_ERROR_CODES or status >= 500:
        return TransientError(message)
    return StorageError(message)


def translate_s3_errors(func):
    """
    A decorator that converts SDK failures raised by ``func`` into
    ``NotFoundError``, ``TransientError`` or ``StorageError``.

    Errors already belonging to the pipeline hierarchy pass through untouched.
    Nothing is retried here.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + "." + func.__name__)
        try:
            return func(*args, **kwargs)
        except ThumbnailPipelineError:
            raise
        except ClientError as e:
            translated = classify_client_error(e)
            logger.warning(
                f"S3 operation '{func.__name__}' failed "
                f"({type(translated).__name__}): {e}"
            )
            raise translated from e
        except TRANSIENT_BOTOCORE_ERRORS as e:
            logger.warning(f"S3 operation '{func.__name__}' hit a transport error: {e}")
            raise TransientError(f"S3 transport failure in {func.__name__}: {e}") from e
        except BotoCoreError as e:
            logger.error(f"S3 operation '{func.__name__}' failed: {e}", exc_info=True)
            raise StorageError(f"S3 operation failed in {func.__name__}: {e}") from e
        except Exception as e:
            logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
            raise StorageError(f"S3 operation failed in {func.__name__}: {e}") from e

    return wrapper


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """

    def __init__(self, operation_name="Batch Operation", logger=None):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logger or logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                item_identifier = error_detail.get("item", "Unknown item")
                error_message = error_detail.get("error", "Unknown error")
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for item '{item_identifier}': {error_message}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}"
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Exceptions not reported through add_error still propagate.
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Report an error for a specific item from within the 'with' block.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): A string identifying the item that failed (e.g. the object key).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(
            f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}"
        )
