from fastapi import Request
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
import traceback
from .logger import logger


class StockMetaBaseException(Exception):
    """Base exception for the metadata generator"""
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(self.message)


class UnsupportedMediaTypeError(StockMetaBaseException):
    """Raised when an uploaded file is not an accepted image or video type"""
    def __init__(self, filename: str):
        super().__init__(
            f"{filename} is not a valid image or video file. Only JPEG, PNG, SVG, AI, EPS images "
            "and MP4, MOV, AVI videos are supported.",
            "UNSUPPORTED_MEDIA_TYPE",
            415,
        )


class FileTooLargeError(StockMetaBaseException):
    """Raised when an uploaded file exceeds the size limit"""
    def __init__(self, filename: str, max_size_gb: int):
        super().__init__(f"{filename} exceeds the {max_size_gb}GB size limit.", "FILE_TOO_LARGE", 413)


class InvalidSvgError(StockMetaBaseException):
    """Raised when SVG content is missing or malformed"""
    def __init__(self, message: str = "Invalid SVG content"):
        super().__init__(message, "INVALID_SVG", 400)


class GeminiRequestError(StockMetaBaseException):
    """Raised when the Gemini API call fails or returns no usable text"""
    def __init__(self, message: str = "Failed to analyze image"):
        super().__init__(message, "GEMINI_REQUEST_ERROR", 502)


class SvgProcessingError(StockMetaBaseException):
    """Raised when the model call for an SVG fails"""
    def __init__(self, message: str = "Failed to analyze SVG with Gemini"):
        super().__init__(message, "SVG_PROCESSING_ERROR", 502)


class MissingApiKeyError(StockMetaBaseException):
    """Raised when no Gemini API key is available for a run"""
    def __init__(self):
        super().__init__("Please enter your Gemini API key first", "MISSING_API_KEY", 400)


class CreditsExhaustedError(StockMetaBaseException):
    """Raised when a free-tier user has no credits left"""
    def __init__(self):
        super().__init__(
            "You have reached your free limit. Please upgrade to premium.",
            "CREDITS_EXHAUSTED",
            403,
        )


class ImageNotFoundError(StockMetaBaseException):
    """Raised when an image is not in the workspace"""
    def __init__(self, image_id: str):
        super().__init__(f"Image {image_id} not found", "IMAGE_NOT_FOUND", 404)


class NoCompletedImagesError(StockMetaBaseException):
    """Raised when an export is requested before anything completed"""
    def __init__(self, message: str = "No completed images to export"):
        super().__init__(message, "NO_COMPLETED_IMAGES", 404)


class BatchInProgressError(StockMetaBaseException):
    """Raised when a batch is started while another one is running"""
    def __init__(self):
        super().__init__("Images are already being processed", "BATCH_IN_PROGRESS", 409)


class SessionStoreError(StockMetaBaseException):
    """Raised when the session backend fails"""
    def __init__(self, message: str = "Session backend operation failed"):
        super().__init__(message, "SESSION_STORE_ERROR", 502)


async def stockmeta_exception_handler(request: Request, exc: StockMetaBaseException):
    """Client mistakes log as warnings, upstream failures as errors"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.code}: {exc.message}",
        extra={
            "error_code": exc.code,
            "request_method": request.method,
            "request_path": request.url.path,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "status_code": exc.status_code,
        }
    )


_HTTP_ERROR_CODES = {401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


async def http_exception_handler(request: Request, exc: HTTPException):
    """Framework errors (auth, routing) in the same body shape as application errors"""
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={
            "http_status_code": exc.status_code,
            "http_detail": exc.detail,
            "request_path": request.url.path,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            "message": exc.detail,
            "status_code": exc.status_code,
        },
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Anything unexpected becomes a 500 without internals in the body"""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        extra={
            "exc_type": type(exc).__name__,
            "request_path": request.url.path,
            "exc_traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_SERVER_ERROR",
            "message": "An internal error occurred. Please try again later.",
        }
    )
