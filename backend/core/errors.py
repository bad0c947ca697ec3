"""
Error taxonomy and the JSON error handlers for the gallery API.

Every failure leaves the API as ``{"success": false, "error": "<message>"}``.
Messages on 5xx responses are fixed strings; the underlying exception is
only written to the server log.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class GalleryError(Exception):
    """Base class for errors that map onto an HTTP status"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(GalleryError):
    status_code = 400
    default_message = "Invalid request"


class UnsupportedFileType(ValidationError):
    default_message = "Only image and video files are allowed"


class AuthenticationError(GalleryError):
    status_code = 401
    default_message = "Not authorized to access this route"


class Forbidden(GalleryError):
    status_code = 403
    default_message = "Not authorized"


class NotFound(GalleryError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(GalleryError):
    status_code = 409
    default_message = "Resource already exists"


class StorageUnavailable(GalleryError):
    status_code = 503
    default_message = "File storage is unavailable"


class InternalError(GalleryError):
    status_code = 500


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def gallery_error_handler(request: Request, exc: GalleryError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return error_response(400, message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, InternalError.default_message)


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(GalleryError, gallery_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
