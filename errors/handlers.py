"""
Exception handlers for applications hosting the session store.

This module provides FastAPI exception handlers that convert exceptions
escaping a request into structured JSON error responses. Session store
outages that survive the store's own retries are reported as 503, known
application errors keep their status, and anything else is logged with
its stack trace and answered with a generic 500.
"""

import logging
import traceback
import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from errors.codes import ErrorCode
from errors.exceptions import AppException, session_store_unavailable
from telemetry.service import get_request_id as get_context_request_id
from telemetry.service import set_request_id

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """
    Structured error response model.
    
    All error responses follow this format for consistency and to enable
    programmatic error handling by clients.
    """
    error_code: str
    message: str
    details: Optional[dict[str, Any]] = None
    request_id: str


def get_request_id(request: Request) -> str:
    """
    Resolve the correlation id for a failed request.
    
    Uses the id stored on the request state, then the id already bound to
    the current context, and otherwise generates one. The resolved id is
    bound to the context so the handler's own log records carry it.
    
    Args:
        request: The FastAPI request object
        
    Returns:
        The request ID string
    """
    if hasattr(request.state, "request_id"):
        request_id = request.state.request_id
    else:
        request_id = get_context_request_id() or str(uuid.uuid4())
    
    set_request_id(request_id)
    return request_id


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle known application exceptions and convert to structured response.
    
    Args:
        request: The FastAPI request object
        exc: The AppException that was raised
        
    Returns:
        JSONResponse with structured error format
    """
    request_id = get_request_id(request)
    
    logger.warning(
        "Application error occurred",
        extra={
            "extra_data": {
                "error_code": exc.error_code.value,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details,
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
            }
        }
    )
    
    error_response = ErrorResponse(
        error_code=exc.error_code.value,
        message=exc.message,
        details=exc.details,
        request_id=request_id,
    )
    
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(exclude_none=True),
    )


async def handle_session_store_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle Redis connectivity failures that outlived the store's retries.
    
    The Redis error text is logged but never returned to the client.
    
    Args:
        request: The FastAPI request object
        exc: The redis ConnectionError or TimeoutError that was raised
        
    Returns:
        JSONResponse with a 503 SESSION_STORE_UNAVAILABLE error
    """
    request_id = get_request_id(request)

    logger.error(
        "Session store unavailable",
        extra={
            "extra_data": {
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
            }
        },
    )
    return await handle_app_exception(request, session_store_unavailable())


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions safely without exposing internal details.
    
    This handler catches all unhandled exceptions, logs the full stack trace
    for debugging, and returns a generic error response to the client.
    
    Args:
        request: The FastAPI request object
        exc: The unexpected exception that was raised
        
    Returns:
        JSONResponse with generic error message (no internal details exposed)
    """
    request_id = get_request_id(request)
    
    logger.error(
        "Unexpected error occurred",
        extra={
            "extra_data": {
                "error_code": ErrorCode.INTERNAL_ERROR.value,
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "stack_trace": traceback.format_exc(),
            }
        },
        exc_info=True,
    )
    
    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message="An unexpected error occurred. Please try again later.",
        details=None,  # Never expose internal details
        request_id=request_id,
    )
    
    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(exclude_none=True),
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI application.
    
    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppException, handle_app_exception)
    
    # Redis errors left over after the store's retries
    app.add_exception_handler(RedisConnectionError, handle_session_store_exception)
    app.add_exception_handler(RedisTimeoutError, handle_session_store_exception)
    
    # Catch-all for everything else
    app.add_exception_handler(Exception, handle_unexpected_exception)
    
    logger.info("Exception handlers registered successfully")
