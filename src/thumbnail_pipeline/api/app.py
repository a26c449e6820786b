"""FastAPI application factory for the upload API."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .. import __version__
from ..config import Settings, get_settings
from ..core.factories import PipelineFactory
from ..core.uploads import UploadService
from .errors import register_exception_handlers
from .routes import router as upload_router

_DESCRIPTION = """
Accepts image uploads, stores the originals under `uploads/` together with
the requested thumbnail parameters, and leaves thumbnail generation to the
resize worker. A successful upload does not guarantee that a thumbnail will
be produced.
"""


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str


def create_app(
    settings: Optional[Settings] = None,
    upload_service: Optional[UploadService] = None,
) -> FastAPI:
    """
    Build the upload API.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        upload_service: Service to route uploads to; built from ``settings``
            when omitted, which requires BUCKET_NAME.
    """
    settings = settings or get_settings()
    if upload_service is None:
        upload_service = PipelineFactory.create_upload_service(settings)

    app = FastAPI(
        title="Thumbnail Upload Service",
        version=settings.app_version or __version__,
        description=_DESCRIPTION,
    )
    app.state.settings = settings
    app.state.upload_service = upload_service

    register_exception_handlers(app)

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(upload_router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=settings.app_version or __version__,
        )

    return app
