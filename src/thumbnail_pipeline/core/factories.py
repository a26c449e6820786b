"""Factory classes for creating configured service instances."""

from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from ..config import Settings
from .observability import LogLevel, StructuredLogger, create_logger
from .protocols import LoggerProtocol, S3ClientProtocol
from .resize import PillowResizeEngine
from .storage import StorageClient
from .uploads import UploadLimits, UploadService
from .worker import ResizeWorker


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: str = "INFO") -> StructuredLogger:
        """Create a structured logger, falling back to INFO for unknown levels."""
        try:
            log_level = LogLevel(level.strip().upper())
        except ValueError:
            log_level = LogLevel.INFO
        return create_logger(name, log_level)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(settings: Settings) -> S3ClientProtocol:
        """Create an S3 client carrying the configured region, endpoint and timeouts."""
        kwargs: Dict[str, Any] = {
            "region_name": settings.aws_region,
            "config": Config(
                connect_timeout=settings.s3_connect_timeout,
                read_timeout=settings.s3_read_timeout,
            ),
        }
        if settings.s3_endpoint_url:
            kwargs["endpoint_url"] = settings.s3_endpoint_url
        # Without explicit keys boto3 uses its default credential chain.
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            kwargs["aws_access_key_id"] = settings.aws_access_key_id
            kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

        session = boto3.Session()
        return session.client("s3", **kwargs)  # type: ignore


class PipelineFactory:
    """Factory for the storage client, upload service and resize worker."""

    @staticmethod
    def create_storage(
        settings: Settings,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> StorageClient:
        bucket = settings.require_bucket()
        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(settings)
        return StorageClient(
            s3_client,
            bucket,
            region=settings.aws_region,
            endpoint_url=settings.s3_endpoint_url,
            logger=logger,
        )

    @staticmethod
    def create_upload_service(
        settings: Settings,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> UploadService:
        """Create the upload service used by the HTTP API."""
        if logger is None:
            logger = LoggerFactory.create_logger("uploads", settings.log_level)

        storage = PipelineFactory.create_storage(settings, s3_client, logger)
        limits = UploadLimits(
            max_file_size=settings.max_file_size_bytes,
            max_files=settings.max_files,
        )
        return UploadService(
            storage, logger, limits=limits, max_workers=settings.worker_concurrency
        )

    @staticmethod
    def create_worker(
        settings: Settings,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> ResizeWorker:
        """Create a fully configured resize worker."""
        if logger is None:
            logger = LoggerFactory.create_logger("worker", settings.log_level)

        storage = PipelineFactory.create_storage(settings, s3_client, logger)
        return ResizeWorker(
            storage=storage,
            engine=PillowResizeEngine(),
            logger=logger,
            record_timeout=settings.record_timeout_seconds,
            max_workers=settings.worker_concurrency,
        )
