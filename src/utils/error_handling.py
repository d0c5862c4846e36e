"""
Centralized Error Handling and Logging
Maps record store failures to minimal structured error responses and logs them with request context.
"""

import json
import logging
import traceback
import uuid
from datetime import datetime
from typing import Any, Dict, Optional, Union
from contextvars import ContextVar

from bson.errors import InvalidId
from fastapi import Request
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pymongo.errors import ConnectionFailure, PyMongoError, WriteError
from starlette.middleware.base import BaseHTTPMiddleware

from services.user_store import StoreUnavailableError

# Context variable for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)

class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    SENSITIVE_FIELD_PATTERNS = [
        'password', 'token', 'key', 'secret', 'authorization',
        'auth', 'cookie', 'credential'
    ]

    MAX_BODY_LOG_SIZE = 5000  # Truncate large bodies

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        """Check if a field contains sensitive data"""
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Union[Dict, str, Any]) -> Any:
        """Recursively sanitize sensitive data from logs"""
        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(key) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        elif isinstance(data, str) and len(data) > cls.MAX_BODY_LOG_SIZE:
            return data[:cls.MAX_BODY_LOG_SIZE] + "...[TRUNCATED]"
        else:
            return data

class StructuredLogger:
    """Structured logging with consistent format and context"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[Exception] = None,
        extra_context: Optional[Dict] = None,
        include_traceback: bool = True
    ) -> str:
        """Log structured error with request context, returns the trace ID"""

        # Reuse the request's trace ID so the log line matches the X-Trace-ID header
        trace_id = request_id_var.get('') or str(uuid.uuid4())[:8]

        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": "ERROR"
        }

        if request:
            headers = dict(request.headers)
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "headers": ErrorHandlingConfig.sanitize_data(headers),
                "client_ip": request.client.host if request.client else None,
            }

        if exception:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": str(exception),
                "module": getattr(exception, '__module__', 'unknown')
            }

            if include_traceback:
                log_entry["exception"]["traceback"] = "".join(
                    traceback.format_exception(type(exception), exception, exception.__traceback__)
                )

        if extra_context:
            log_entry["context"] = ErrorHandlingConfig.sanitize_data(extra_context)

        logger.error(json.dumps(log_entry, indent=2, default=str))

        return trace_id

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to capture request context and add request IDs"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        request_id_var.set(trace_id)
        request.state.trace_id = trace_id

        # Keep the body around for error logs; Starlette caches it for the endpoint
        request.state.captured_body = await request.body()

        try:
            response = await call_next(request)
        except Exception as e:
            # Exceptions without a more specific handler surface here
            response = await general_exception_handler(request, e)
        # Trace ID lets clients correlate a failure with the server log
        response.headers["X-Trace-ID"] = trace_id
        return response

def _captured_body(request: Request) -> Optional[str]:
    """Request body for error logs, when the middleware captured one"""
    body = getattr(request.state, "captured_body", None)
    if not body:
        return None
    try:
        return ErrorHandlingConfig.sanitize_data(body.decode('utf-8'))
    except UnicodeDecodeError:
        return "DECODE_ERROR"

def error_response(status_code: int, error: str, message: str, trace_id: Optional[str] = None, **extra) -> JSONResponse:
    """Build the minimal structured error body shared by every handler"""
    content = {"error": error, "message": message}
    content.update(extra)

    if trace_id:
        content["trace_id"] = trace_id
    content["timestamp"] = datetime.utcnow().isoformat()

    return JSONResponse(status_code=status_code, content=content)

# Global Exception Handlers
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions, logging server-side failures only"""
    trace_id = None
    if exc.status_code >= 500:
        trace_id = StructuredLogger.log_error(
            f"http_{exc.status_code}",
            f"HTTP {exc.status_code}: {exc.detail}",
            request=request,
            exception=exc,
            extra_context={"request_body": _captured_body(request)},
        )

    response = error_response(exc.status_code, f"HTTP {exc.status_code}", exc.detail, trace_id)
    if exc.headers:
        response.headers.update(exc.headers)
    return response

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI validation errors (HTTP 422)"""
    validation_details = [
        {
            "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "unknown"),
        }
        for error in exc.errors()
    ]

    trace_id = StructuredLogger.log_error(
        "validation_error_422",
        f"Request validation failed: {len(validation_details)} validation errors",
        request=request,
        exception=exc,
        extra_context={
            "validation_errors": validation_details,
            "request_body": _captured_body(request),
        },
        include_traceback=False
    )

    return error_response(
        422,
        "Validation Error",
        "Request validation failed",
        trace_id,
        detail=validation_details,
    )

async def invalid_id_handler(request: Request, exc: InvalidId) -> JSONResponse:
    """A path id that is not a valid ObjectId"""
    trace_id = StructuredLogger.log_error(
        "invalid_id",
        f"Invalid user id: {exc}",
        request=request,
        exception=exc,
        include_traceback=False
    )
    return error_response(400, "Bad Request", "Invalid user id", trace_id)

async def write_error_handler(request: Request, exc: WriteError) -> JSONResponse:
    """The store rejected a write, e.g. a $set on the immutable _id"""
    trace_id = StructuredLogger.log_error(
        "store_write_rejected",
        f"Record store rejected write: {exc}",
        request=request,
        exception=exc,
        extra_context={"request_body": _captured_body(request), "code": exc.code},
        include_traceback=False
    )
    return error_response(400, "Bad Request", "Record store rejected the write", trace_id)

async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """No store handle, or the connection to the store failed"""
    trace_id = StructuredLogger.log_error(
        "store_unavailable",
        f"Record store unavailable: {exc}",
        request=request,
        exception=exc,
        include_traceback=False
    )
    return error_response(503, "Service Unavailable", "Record store unavailable", trace_id)

async def store_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    """Any other driver failure"""
    trace_id = StructuredLogger.log_error(
        "store_error",
        f"Record store error: {exc}",
        request=request,
        exception=exc,
        extra_context={"request_body": _captured_body(request)},
    )
    return error_response(500, "Internal Server Error", "Record store operation failed", trace_id)

async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions"""
    trace_id = StructuredLogger.log_error(
        "internal_server_error",
        f"Unhandled exception: {str(exc)}",
        request=request,
        exception=exc,
        extra_context={"request_body": _captured_body(request)},
    )

    # Don't expose internal details
    return error_response(500, "Internal Server Error", "An unexpected error occurred", trace_id)

def setup_error_handling(app):
    """Setup error handling for FastAPI app"""

    app.add_middleware(RequestContextMiddleware)

    # Handlers are looked up along the exception's MRO, most specific class wins
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(InvalidId, invalid_id_handler)
    app.add_exception_handler(WriteError, write_error_handler)
    app.add_exception_handler(ConnectionFailure, store_unavailable_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Centralized error handling initialized")
