"""
    Centralized exception handling for the FastAPI application.
"""
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class InvalidImageException(APIException):
    """Exception for request bodies that fail validation."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class AuthenticationException(APIException):
    """Exception for a missing or invalid access token."""
    def __init__(self, detail: str = "Access token invalid or not provided."):
        super().__init__(status_code=401, detail=detail)

class AuthorizationException(APIException):
    """Exception for callers that do not own the requested image."""
    def __init__(self, detail: str = "The request contained valid data and was understood by the server, but the server is refusing action due to the authenticated user not having the necessary permissions for the resource."):
        super().__init__(status_code=403, detail=detail)

class ImageNotFoundException(APIException):
    """Exception for when an image is not found."""
    def __init__(self, image_id: str):
        super().__init__(status_code=404, detail=f"Image with ID '{image_id}' not found.")

class UpstreamException(APIException):
    """
        Exception for failures reported by the image host.
        The upstream status and message are kept for logging only,
        the client sees a generic 500.
    """
    def __init__(self, upstream_status: Optional[int] = None, upstream_message: Optional[str] = None):
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message
        super().__init__(status_code=500, detail="The image service failed to handle the request.")

class DynamoDBException(APIException):
    """Exception for DynamoDB failures."""
    def __init__(self, detail: str = "Failed to access image metadata."):
        super().__init__(status_code=500, detail=detail)

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    if isinstance(exc, UpstreamException):
        log.error(
            "Upstream Exception: status=%s message=%s",
            exc.upstream_status, exc.upstream_message, exc_info=exc
        )
    elif exc.status_code >= 500:
        log.error(f"API Exception: {exc.detail}", exc_info=exc)
    else:
        log.info(f"API Exception: {exc.status_code} {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles framework-level request validation errors as a plain 400."""
    log.info("Request validation failed: %s", exc.errors())
    return JSONResponse(
        status_code=400,
        content={"detail": "The request body is malformed."},
    )

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred."},
    )

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
