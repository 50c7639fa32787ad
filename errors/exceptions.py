"""
Exception classes for the session store.

This module provides the AppException class, the SessionDataError raised
for unreadable persisted sessions, and convenience factory functions for
creating application-specific exceptions with proper error codes.
"""

from typing import Any, Optional

from errors.codes import ErrorCode, get_default_status_code


class AppException(Exception):
    """
    Base exception class for all application-specific errors.
    
    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - status_code: The HTTP status code to return
    - details: Optional additional context (e.g., the session id)
    
    Example:
        raise AppException(
            error_code=ErrorCode.VALIDATION_ERROR,
            message="Session id cannot be empty",
            details={"field": "id"}
        )
    """
    
    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize an AppException.
        
        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            status_code: The HTTP status code (defaults to the error code's default)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(error_code)
        self.details = details
        super().__init__(message)
    
    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.
        
        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result
    
    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


class SessionDataError(AppException):
    """
    Raised when a persisted session exists but its fields cannot be decoded.
    
    Retrying will not repair corrupt data, so this error is never retried
    by the session store.
    """
    
    def __init__(
        self,
        session_id: str,
        reason: str,
        details: Optional[dict[str, Any]] = None
    ):
        self.session_id = session_id
        self.reason = reason
        merged = {"session_id": session_id, "reason": reason}
        if details:
            merged.update(details)
        super().__init__(
            error_code=ErrorCode.SESSION_DATA_CORRUPT,
            message=f"Unreadable session data for session `{session_id}`: {reason}",
            details=merged,
        )


# Convenience factory functions for common error types

def validation_error(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a validation error exception."""
    return AppException(
        error_code=ErrorCode.VALIDATION_ERROR,
        message=message,
        details=details
    )


def session_store_unavailable(
    message: str = "Session store unavailable",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a session store unavailable exception."""
    return AppException(
        error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
        message=message,
        details=details
    )
