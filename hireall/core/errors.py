"""
API Errors - typed exceptions raised by services and route handlers.

Every exception carries a machine-readable ``code`` and an HTTP status.
The ``with_api`` wrapper (and the app-level handlers in ``hireall.main``)
turn them into the standard error envelope:

    {
        "success": false,
        "error": {"code": "CONTENT_NOT_FOUND", "message": "Job not found"},
        "meta": {"request_id": "req_...", "timestamp": "..."}
    }
"""

from typing import Any, Dict, Optional


class ErrorCode:
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_JSON = "INVALID_JSON"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_URL = "INVALID_URL"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_TOKEN = "INVALID_TOKEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    PREMIUM_REQUIRED = "PREMIUM_REQUIRED"
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"
    DUPLICATE_RECORD = "DUPLICATE_RECORD"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_UPLOAD_FAILED = "FILE_UPLOAD_FAILED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    DATABASE_QUERY_FAILED = "DATABASE_QUERY_FAILED"
    THIRD_PARTY_API_ERROR = "THIRD_PARTY_API_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


STATUS_CODES: Dict[str, int] = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.INVALID_JSON: 400,
    ErrorCode.MISSING_REQUIRED_FIELD: 400,
    ErrorCode.INVALID_URL: 400,
    ErrorCode.INVALID_EMAIL: 400,
    ErrorCode.INVALID_FILE_TYPE: 400,
    ErrorCode.FILE_UPLOAD_FAILED: 400,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.PREMIUM_REQUIRED: 403,
    ErrorCode.CONTENT_NOT_FOUND: 404,
    ErrorCode.DUPLICATE_RECORD: 409,
    ErrorCode.FILE_TOO_LARGE: 413,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.QUOTA_EXCEEDED: 429,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.DATABASE_QUERY_FAILED: 500,
    ErrorCode.THIRD_PARTY_API_ERROR: 502,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.TIMEOUT: 504,
}

DEFAULT_MESSAGES: Dict[str, str] = {
    ErrorCode.VALIDATION_FAILED: "Request validation failed",
    ErrorCode.INVALID_JSON: "Invalid JSON in request body",
    ErrorCode.MISSING_REQUIRED_FIELD: "A required field is missing",
    ErrorCode.INVALID_TOKEN: "Invalid or expired authentication token",
    ErrorCode.UNAUTHORIZED: "Authentication required",
    ErrorCode.FORBIDDEN: "You do not have permission to perform this action",
    ErrorCode.PREMIUM_REQUIRED: "Premium subscription required",
    ErrorCode.CONTENT_NOT_FOUND: "The requested resource was not found",
    ErrorCode.DUPLICATE_RECORD: "This record already exists",
    ErrorCode.FILE_TOO_LARGE: "File too large",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests. Please try again later.",
    ErrorCode.QUOTA_EXCEEDED: "Usage quota exceeded",
    ErrorCode.INTERNAL_SERVER_ERROR: "An unexpected error occurred",
    ErrorCode.DATABASE_QUERY_FAILED: "Database operation failed",
    ErrorCode.THIRD_PARTY_API_ERROR: "An external service returned an error",
    ErrorCode.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
    ErrorCode.TIMEOUT: "The operation timed out",
}


def status_for(code: str) -> int:
    return STATUS_CODES.get(code, 500)


class ApiError(Exception):
    """Base class for every error that maps onto an HTTP response."""

    default_code = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or DEFAULT_MESSAGES.get(self.code, "Error")
        self.status_code = status_code or status_for(self.code)
        self.field = field
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field:
            error["field"] = self.field
        if self.details:
            error["details"] = self.details
        return error


class ValidationError(ApiError):
    default_code = ErrorCode.VALIDATION_FAILED


class AuthorizationError(ApiError):
    default_code = ErrorCode.UNAUTHORIZED


class ForbiddenError(ApiError):
    default_code = ErrorCode.FORBIDDEN


class NotFoundError(ApiError):
    default_code = ErrorCode.CONTENT_NOT_FOUND


class ConflictError(ApiError):
    default_code = ErrorCode.DUPLICATE_RECORD


class PayloadTooLargeError(ApiError):
    default_code = ErrorCode.FILE_TOO_LARGE


class DatabaseError(ApiError):
    default_code = ErrorCode.DATABASE_QUERY_FAILED

    def __init__(self, message: Optional[str] = None, operation: Optional[str] = None, **kwargs):
        self.operation = operation
        super().__init__(message, **kwargs)


class RateLimitError(ApiError):
    """Raised when a caller exceeds a request or usage limit.

    ``retry_after`` is in seconds and ends up in the Retry-After header.
    """

    default_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, message: Optional[str] = None, retry_after: int = 60, **kwargs):
        self.retry_after = retry_after
        super().__init__(message, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        error = super().to_dict()
        error["retry_after"] = self.retry_after
        return error


class ServiceUnavailableError(ApiError):
    default_code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None, **kwargs):
        self.retry_after = retry_after
        super().__init__(message, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        error = super().to_dict()
        if self.retry_after is not None:
            error["retry_after"] = self.retry_after
        return error


class ExternalServiceError(ApiError):
    """An upstream API (the AI provider) failed or returned garbage."""

    default_code = ErrorCode.THIRD_PARTY_API_ERROR
