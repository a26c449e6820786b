"""
Upload routes.

Files arrive as multipart form data. Resize parameters travel as plain
form fields next to the files and are validated once per request.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.datastructures import FormData, UploadFile

from ..core.exceptions import BatchUploadError, StorageError
from ..core.models import DEFAULT_CONFIG, ImageFormat, ImageUpload
from ..core.uploads import UploadService
from ..core.validation import CONFIG_FIELDS, PRESETS
from .errors import public_message, upload_failure

router = APIRouter(prefix="/api/upload", tags=["upload"])

CONFIG_FORM_FIELDS = CONFIG_FIELDS + ("preset",)


def _service(request: Request) -> UploadService:
    return request.app.state.upload_service


def _raw_config(form: FormData) -> Dict[str, Any]:
    """Pick the resize parameters out of a form; file parts are ignored."""
    return {
        name: form.get(name)
        for name in CONFIG_FORM_FIELDS
        if isinstance(form.get(name), str)
    }


async def _to_upload(service: UploadService, file: UploadFile) -> ImageUpload:
    """Check a file part's headers, then read at most one byte past the size limit."""
    filename = file.filename or "upload"
    service.check_part(filename, file.content_type, file.size)
    data = await file.read(service.limits.max_file_size + 1)
    return ImageUpload(filename=filename, content_type=file.content_type or "", data=data)


@router.post("/single", summary="Upload one image")
async def upload_single(request: Request) -> Any:
    form = await request.form()
    service = _service(request)
    image = form.get("image")
    upload: Optional[ImageUpload] = None
    if isinstance(image, UploadFile):
        upload = await _to_upload(service, image)

    try:
        stored = await run_in_threadpool(
            service.upload_single, upload, _raw_config(form)
        )
    except StorageError as e:
        return upload_failure(
            "Failed to upload image",
            public_message(request, e),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {
        "success": True,
        "message": "Image uploaded successfully. Thumbnail will be generated shortly.",
        "data": {
            "originalImage": {
                "key": stored.key,
                "url": stored.location,
                "size": stored.size_bytes,
            }
        },
    }


@router.post("/multiple", summary="Upload up to the configured number of images")
async def upload_multiple(request: Request) -> Any:
    form = await request.form()
    service = _service(request)
    parts = [item for item in form.getlist("images") if isinstance(item, UploadFile)]
    service.check_count(len(parts))
    uploads: List[ImageUpload] = [await _to_upload(service, part) for part in parts]

    try:
        result = await run_in_threadpool(
            service.upload_many, uploads, _raw_config(form)
        )
    except (BatchUploadError, StorageError) as e:
        return upload_failure(
            "Failed to upload images",
            public_message(request, e),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {
        "success": True,
        "message": (
            f"{result.count} images uploaded successfully. "
            "Thumbnails will be generated shortly."
        ),
        "data": {
            "originalImage": {
                "key": result.batch_id,
                "url": "Multiple images uploaded",
                "size": result.total_bytes,
            },
            "count": result.count,
        },
    }


@router.get("/status", summary="Service capabilities")
async def upload_status(request: Request) -> JSONResponse:
    limits = _service(request).limits
    return JSONResponse(
        {
            "status": "ok",
            "service": "thumbnail-upload-service",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "maxFileSize": limits.max_file_size_label,
            "maxFiles": limits.max_files,
            "allowedTypes": list(limits.allowed_content_types),
            "thumbnailConfig": {
                "defaultWidth": DEFAULT_CONFIG.width,
                "defaultHeight": DEFAULT_CONFIG.height,
                "defaultQuality": DEFAULT_CONFIG.quality,
                "defaultFormat": DEFAULT_CONFIG.format.value,
                "supportedFormats": [fmt.value for fmt in ImageFormat],
                "presets": {
                    name: preset.model_dump(mode="json")
                    for name, preset in PRESETS.items()
                },
            },
            "endpoints": {
                "single": (
                    "POST /api/upload/single (field 'image', with optional "
                    "width, height, quality, format or preset)"
                ),
                "multiple": (
                    f"POST /api/upload/multiple (field 'images', max "
                    f"{limits.max_files} images, with optional thumbnail config)"
                ),
            },
        }
    )
