"""Exception handlers that turn pipeline errors into JSON envelopes."""

from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.exceptions import UploadRejectedError, ValidationError
from ..core.logging_config import get_logger

logger = get_logger("api")

GENERIC_ERROR_MESSAGE = "Something went wrong"
INVALID_CONFIG_MESSAGE = "Invalid thumbnail configuration"


def public_message(request: Request, exc: Exception) -> str:
    """Error detail for clients; internals stay hidden in production."""
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and settings.is_production:
        return GENERIC_ERROR_MESSAGE
    return str(exc) or type(exc).__name__


def upload_failure(message: str, error: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error},
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info(f"Rejected resize parameters on {request.url.path}: {exc.summary()}")
    return upload_failure(INVALID_CONFIG_MESSAGE, exc.summary())


async def upload_rejected_handler(
    request: Request, exc: UploadRejectedError
) -> JSONResponse:
    logger.info(f"Rejected upload on {request.url.path}: {exc.code}")
    return upload_failure(str(exc), exc.code)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {"error": "Not Found", "message": "Route not found"}
    else:
        content = {
            "error": HTTPStatus(exc.status_code).phrase,
            "message": exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        }
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=exc.headers
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": public_message(request, exc),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(UploadRejectedError, upload_rejected_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
