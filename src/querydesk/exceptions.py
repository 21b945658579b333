"""
QueryDesk - Custom Exceptions.

Centralized error taxonomy. The API client raises these; workspace
components catch them at their public boundary and turn them into
tagged outcomes plus a single user-facing notification.
"""

from typing import Any


class QueryDeskException(Exception):
    """Base exception for QueryDesk."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for the presentation layer."""
        return {
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
        }


class UnsupportedFileTypeException(QueryDeskException):
    """Raised when a selected file is neither CSV nor Excel."""

    def __init__(self, file_name: str, content_type: str | None = None):
        super().__init__(
            code="UNSUPPORTED_FILE_TYPE",
            message="Please upload CSV or Excel files.",
            details={"file_name": file_name, "content_type": content_type},
        )


class NetworkException(QueryDeskException):
    """Raised when the transport fails (connection, timeout, DNS...)."""

    def __init__(self, message: str = "Could not reach the query service.", operation: str | None = None):
        super().__init__(
            code="NETWORK_ERROR",
            message=message,
            details={"operation": operation} if operation else None,
        )


class HttpErrorException(QueryDeskException):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status_code: int, operation: str | None = None, code: str = "HTTP_ERROR"):
        super().__init__(
            code=code,
            message=f"Status {status_code}",
            status_code=status_code,
            details={"operation": operation} if operation else None,
        )


class UploadRejectedException(HttpErrorException):
    """Raised when the service refuses an uploaded file."""

    def __init__(self, status_code: int):
        super().__init__(status_code, operation="upload", code="UPLOAD_REJECTED")


class MalformedResponseException(QueryDeskException):
    """Raised when a 2xx body cannot be parsed or validated."""

    def __init__(self, message: str = "Response could not be parsed.", operation: str | None = None):
        super().__init__(
            code="MALFORMED_RESPONSE",
            message=message,
            details={"operation": operation} if operation else None,
        )


class ConflictException(QueryDeskException):
    """Raised when an operation of the same kind is already in flight."""

    def __init__(self, message: str, current_state: str | None = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=409,
            details={"current_state": current_state} if current_state else None,
        )


class StorageException(QueryDeskException):
    """Raised when the key-value store cannot be read or written."""

    def __init__(self, backend: str, message: str):
        super().__init__(
            code="STORAGE_UNAVAILABLE",
            message=f"{backend} storage error: {message}",
            details={"backend": backend},
        )


class ConfirmationException(QueryDeskException):
    """Raised when the confirmation prompt itself fails."""

    def __init__(self, prompt: str, reason: str):
        super().__init__(
            code="CONFIRMATION_FAILED",
            message=f"Could not ask for confirmation: {reason}",
            details={"prompt": prompt},
        )
