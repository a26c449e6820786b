"""Main module for the thumbnail pipeline CLI."""

import argparse
import json
import sys
from typing import List, Optional

from . import __version__
from .config import Settings
from .core.exceptions import ConfigurationError
from .core.factories import PipelineFactory
from .core.logging_config import get_logger

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thumbnail-pipeline",
        description="Thumbnail Pipeline - image uploads to S3 with event-driven resizing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the upload API
  thumbnail-pipeline serve --port 3000

  # Generate the thumbnail for one stored upload
  thumbnail-pipeline process --bucket my-bucket --key uploads/1234-photo.jpg

  # Show version
  thumbnail-pipeline version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the upload API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: PORT)")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes"
    )

    process_parser = subparsers.add_parser(
        "process", help="Run the resize worker on a single object"
    )
    process_parser.add_argument("--bucket", required=True, help="Bucket holding the upload")
    process_parser.add_argument("--key", required=True, help="Key of the upload")

    subparsers.add_parser("version", help="Show version information")
    return parser


def serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    settings.require_bucket()
    uvicorn.run(
        "thumbnail_pipeline.api:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def process(args: argparse.Namespace, settings: Settings) -> int:
    worker = PipelineFactory.create_worker(settings)
    record = {
        "eventName": "ObjectCreated:Put",
        "s3": {"bucket": {"name": args.bucket}, "object": {"key": args.key}},
    }
    summary = worker.handle_batch([record])
    print(json.dumps(summary.model_dump(mode="json"), indent=2))
    return 1 if summary.failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``thumbnail-pipeline`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print("Thumbnail Pipeline")
        print(f"Version {__version__}")
        return 0

    if args.command not in ("serve", "process"):
        parser.print_help()
        return 1

    settings = Settings()
    try:
        if args.command == "serve":
            return serve(args, settings)
        return process(args, settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
