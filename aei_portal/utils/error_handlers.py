"""
Centralized error types and user-friendly error messages.
"""
import logging
from urllib.parse import urlencode

from fastapi.responses import RedirectResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or invalid input. The request has no side effect."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(AppError):
    """Bad credentials. Never says whether the account exists."""
    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("invalid_credentials"), status_code=401, details=details)


class UnauthorizedError(AppError):
    """No (valid) session."""
    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("unauthorized"), status_code=401, details=details)


class ForbiddenError(AppError):
    """Role or ownership mismatch."""
    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("forbidden"), status_code=403, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("not_found"), status_code=404, details=details)


class DuplicateError(AppError):
    """Unique constraint violation, e.g. an email that is already registered."""
    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("already_exists"), status_code=409, details=details)


class FileUploadError(AppError):
    """File upload error."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class FileTooLargeError(FileUploadError):
    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("file_too_large"), details=details)
        self.status_code = 413


class DatabaseError(AppError):
    """Database error."""
    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or get_error_message("database_error"), status_code=500, details=details)


# Errors a route converts into a redirect with a message instead of an error page.
EXPECTED_ERRORS = (ValidationError, DuplicateError, NotFoundError, AuthenticationError, FileUploadError)


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid email or password. Please try again.",
    "email_exists": "An account with this email already exists.",

    # Students / status
    "student_not_found": "Student record not found.",
    "employer_not_found": "Employer record not found.",
    "user_not_found": "User account not found.",
    "invalid_status": "Invalid status value.",
    "cannot_delete_self": "You cannot delete your own account.",

    # Documents
    "file_too_large": "File is too large.",
    "file_missing": "File no longer available on server.",
    "document_not_found": "Document not found.",
    "invalid_category": "Please choose a document category from the list.",
    "no_file": "Please choose a file to upload.",

    # Access requests
    "request_not_found": "Access request not found.",

    # General
    "unauthorized": "Please login to access this page.",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "already_exists": "This record already exists. Please check your input.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def handle_database_error(error: Exception, operation: str = "") -> AppError:
    """Map a SQLAlchemy error to an application error with a user-friendly message."""
    logger.error(f"Database error during {operation}: {error}")

    error_str = str(error).lower()

    if "duplicate" in error_str or "unique" in error_str:
        return DuplicateError()

    if "foreign key" in error_str:
        return ValidationError("Invalid reference. The related record may have been deleted.")

    if "check constraint" in error_str:
        return ValidationError(get_error_message("validation_error"))

    return DatabaseError()


def redirect_with(url: str, *, message: str | None = None, error: str | None = None) -> RedirectResponse:
    """POST-redirect-GET with a one-shot message carried in the query string."""
    params = {}
    if message:
        params["msg"] = message
    if error:
        params["error"] = error
    if params:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}{urlencode(params)}"
    return RedirectResponse(url=url, status_code=303)
