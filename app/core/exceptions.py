# backend/app/core/exceptions.py
from fastapi import Request, status
from fastapi.responses import JSONResponse


class FreebieError(Exception):
    """Base class for errors the API turns into a short JSON message."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FreebieError):
    """Malformed input to create/review/report, or an upload that is not an image."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(FreebieError):
    status_code = status.HTTP_404_NOT_FOUND


class StoreError(FreebieError):
    """The underlying database failed (connection, lock, quota...)."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class EncodingError(FreebieError):
    """A photo cannot be compressed under the inline size cap."""
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


async def freebie_error_handler(request: Request, exc: FreebieError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
