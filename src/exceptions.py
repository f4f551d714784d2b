"""Application error taxonomy and the handlers that map it to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that end a request with a known status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_content(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, details: list[dict] | None = None):
        super().__init__(message)
        self.details = details or []

    def to_content(self) -> dict:
        content = super().to_content()
        if self.details:
            content["details"] = self.details
        return content


class ConflictError(AppError):
    """A unique key is already taken."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class UnauthorizedError(AppError):
    """No valid session accompanies the request."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not Found"


class InternalError(AppError):
    pass


def _field_errors(exc: RequestValidationError) -> list[dict]:
    """Flatten pydantic errors into ``{field, message}`` pairs."""
    details = []
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" segment
        loc = [str(part) for part in error.get("loc", ())[1:]]
        details.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto status codes in one place."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = ValidationError(details=_field_errors(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_content())

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.exception(f"Database error on {request.method} {request.url.path}")
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content=error.to_content())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content=error.to_content())
