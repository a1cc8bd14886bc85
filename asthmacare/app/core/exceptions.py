"""Custom exception classes for the AsthmaCare application."""


class AsthmaCareException(Exception):
    """Base exception for all AsthmaCare-specific errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ReportNotFoundError(AsthmaCareException):
    """Raised when a report is not found for the current user."""

    def __init__(self, report_id: str):
        super().__init__(
            message=f"Report not found: {report_id}",
            details="The requested report does not exist"
        )
        self.report_id = report_id


class AppointmentNotFoundError(AsthmaCareException):
    """Raised when an appointment is not found for the current user."""

    def __init__(self, appointment_id: str):
        super().__init__(
            message=f"Appointment not found: {appointment_id}",
            details="The requested appointment does not exist"
        )
        self.appointment_id = appointment_id


class InvalidStatusTransitionError(AsthmaCareException):
    """Raised when a report is moved to a status its current status does not allow."""

    def __init__(self, report_id: str, current: str, requested: str):
        super().__init__(
            message=f"Report {report_id} cannot move from {current} to {requested}",
            details="Analysis can only be restarted once it has completed or failed"
        )
        self.report_id = report_id
        self.current = current
        self.requested = requested


class InvalidUploadError(AsthmaCareException):
    """Raised when an upload request contains no acceptable file."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            details="Supported formats are PDF, JPG and PNG up to the configured size"
        )


class AuthenticationRequiredError(AsthmaCareException):
    """Raised when an operation needs a signed-in user."""

    def __init__(self, reason: str | None = None):
        super().__init__(
            message="Authentication required",
            details=reason or "Please log in to continue"
        )


class AppointmentValidationError(AsthmaCareException):
    """Raised when appointment data is rejected."""

    def __init__(self, message: str):
        super().__init__(message=message, details="Please check the appointment details")


class ReportDeletionError(AsthmaCareException):
    """Raised when deleting a report fails part-way."""

    def __init__(self, report_id: str, stage: str, original_error: str | None = None):
        message = f"Failed to delete report {report_id} during {stage}"
        if original_error:
            message += f": {original_error}"
        super().__init__(
            message=message,
            details="The report was left in place"
        )
        self.report_id = report_id
        self.stage = stage


class StorageError(AsthmaCareException):
    """Raised when the object storage collaborator fails."""

    def __init__(self, operation: str, original_error: str | None = None):
        message = f"Storage error during {operation}"
        if original_error:
            message += f": {original_error}"
        super().__init__(
            message=message,
            details="The file storage service is temporarily unavailable"
        )
        self.operation = operation


class PersistenceError(AsthmaCareException):
    """Raised when the persistence collaborator fails."""

    def __init__(self, operation: str, original_error: str | None = None):
        message = f"Database error during {operation}"
        if original_error:
            message += f": {original_error}"
        super().__init__(
            message=message,
            details="The database service is temporarily unavailable"
        )
        self.operation = operation


class AnalysisServiceError(AsthmaCareException):
    """Raised when the report analyzer fails."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"Analysis service error during {operation}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(
            message=message,
            details="The analysis service is temporarily unavailable"
        )
        self.operation = operation
        self.original_error = original_error


class AnalysisNotAvailableError(AsthmaCareException):
    """Raised when a report's analysis is requested before it has completed."""

    def __init__(self, report_id: str, status: str):
        super().__init__(
            message=f"Analysis not available for report {report_id}",
            details=f"The report is {status}"
        )
        self.report_id = report_id
        self.status = status
