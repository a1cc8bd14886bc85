"""Exception handlers for converting custom exceptions to HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from asthmacare.app.core.exceptions import (
    AsthmaCareException,
    ReportNotFoundError,
    AppointmentNotFoundError,
    InvalidStatusTransitionError,
    AnalysisNotAvailableError,
    InvalidUploadError,
    AppointmentValidationError,
    AuthenticationRequiredError,
    ReportDeletionError,
    StorageError,
    PersistenceError,
    AnalysisServiceError,
)


async def asthmacare_exception_handler(request: Request, exc: AsthmaCareException) -> JSONResponse:
    """
    Handle all AsthmaCare custom exceptions and convert to appropriate HTTP responses.

    Args:
        request: The incoming request
        exc: The exception that was raised

    Returns:
        JSONResponse with the uniform failure envelope
    """
    # Map exception types to HTTP status codes
    if isinstance(exc, (ReportNotFoundError, AppointmentNotFoundError)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (InvalidStatusTransitionError, AnalysisNotAvailableError)):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, (InvalidUploadError, AppointmentValidationError)):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, AuthenticationRequiredError):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, (ReportDeletionError, StorageError, PersistenceError)):
        status_code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(exc, AnalysisServiceError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        # Generic AsthmaCareException
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": exc.message,
            "type": exc.__class__.__name__,
            **({"details": exc.details} if exc.details else {})
        },
        headers=headers,
    )


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AsthmaCareException, asthmacare_exception_handler)
