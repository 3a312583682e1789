"""
Global Exception Handlers

Custom exceptions and FastAPI exception handlers.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class VoloException(Exception):
    """Base exception for Volo errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(VoloException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            status_code=404
        )


class UnauthorizedError(VoloException):
    """Authentication/authorization failed."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=401)


class RateLimitError(VoloException):
    """Rate limit exceeded."""

    def __init__(self):
        super().__init__(
            message="Rate limit exceeded. Please slow down.",
            status_code=429
        )


class ExternalServiceError(VoloException):
    """An upstream service (recommender, search, catalog) rejected a call."""

    def __init__(self, service: str, detail: str):
        self.service = service
        super().__init__(
            message=f"{service} request failed: {detail}",
            status_code=502
        )


class UploadError(VoloException):
    """Object upload was rejected by the storage endpoint."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message=message, status_code=status_code)


class FeedFetchError(VoloException):
    """A feed page could not be fetched."""

    def __init__(self, status: int, detail: str = ""):
        self.status = status
        super().__init__(
            message=f"Feed page request failed with status {status}: {detail}",
            status_code=502
        )


class InvalidObservationError(VoloException):
    """A visibility entry referenced a video the feed does not contain."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(
            message=f"Visibility entry for unknown video: {video_id}",
            status_code=500
        )


async def volo_exception_handler(
    request: Request,
    exc: VoloException
) -> JSONResponse:
    """Handle VoloException and return JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "status_code": exc.status_code,
        }
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(VoloException, volo_exception_handler)
