from enum import Enum
from typing import Optional

from tortoise.exceptions import DoesNotExist, IntegrityError


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_INPUT = "INVALID_INPUT"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    RATE_LIMITED = "RATE_LIMITED"


class AppError(Exception):
    """
    Base for errors that are safe to surface to API callers.
    `message` is for logs, `user_message` is what the client sees.
    """
    code = ErrorCode.INVALID_INPUT
    status_code = 400

    def __init__(self, message: str, user_message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.field = field

    def to_dict(self):
        body = {"code": self.code.value, "message": self.user_message}
        if self.field:
            body["field"] = self.field
        return body


class AuthenticationRequired(AppError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "You must be signed in to access this resource.")


class InvalidCredentials(AppError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, "Invalid email or password.")


class PermissionDenied(AppError):
    code = ErrorCode.PERMISSION_DENIED
    status_code = 403

    def __init__(self, action: Optional[str] = None):
        message = f"Permission denied for {action}" if action else "Permission denied"
        super().__init__(message, "You do not have permission to perform this action.")


class ResourceNotFound(AppError):
    code = ErrorCode.RESOURCE_NOT_FOUND
    status_code = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", f"The requested {resource.lower()} could not be found.")
        self.resource = resource


class ValidationFailure(AppError):
    code = ErrorCode.INVALID_INPUT
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(f"Invalid {field}: {message}" if field else message, message, field)


class ConflictError(AppError):
    code = ErrorCode.CONFLICT
    status_code = 409


class TooManyRequests(AppError):
    code = ErrorCode.RATE_LIMITED
    status_code = 429

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message, "Too many requests. Please try again later.")


class DatabaseError(AppError):
    code = ErrorCode.DATABASE_ERROR
    status_code = 500

    def __init__(self, operation: Optional[str] = None):
        super().__init__(
            f"Database error during {operation}" if operation else "Database error",
            "We are experiencing technical difficulties. Please try again later.",
        )


def handle_db_error(exc: Exception, operation: Optional[str] = None) -> AppError:
    """Maps ORM exceptions onto the user-facing error taxonomy."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, IntegrityError):
        return ConflictError(str(exc), "This record conflicts with an existing one.")
    if isinstance(exc, DoesNotExist):
        return ResourceNotFound("Record")
    return DatabaseError(operation)
