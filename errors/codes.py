"""
Error code catalog for the session store.

This module defines all error codes used throughout the application,
covering validation errors, session store failures, and internal errors.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the application.
    
    Each error code maps to a specific HTTP status code and error category:
    - Validation errors (4xx): Bad input from the calling container
    - Session store errors (5xx): Redis unavailable or persisted data unusable
    - Internal errors (5xx): Server-side issues
    """
    
    # Validation errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Session record or identifier failed validation (HTTP 400)"""
    
    # Session store errors (5xx)
    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """Redis unreachable or timed out after retries (HTTP 503)"""
    
    SESSION_DATA_CORRUPT = "SESSION_DATA_CORRUPT"
    """Persisted session fields could not be decoded (HTTP 500)"""
    
    # Internal errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.SESSION_STORE_UNAVAILABLE: 503,
    ErrorCode.SESSION_DATA_CORRUPT: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.
    
    Args:
        error_code: The error code to look up
        
    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
