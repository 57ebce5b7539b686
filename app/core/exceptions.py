"""
Exception handling

Business exceptions and the global exception handlers that turn them
into the JSON envelope
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger

from .response import error_response


class AppException(Exception):
    """Base application exception"""

    error = "internal_error"

    def __init__(
        self,
        message: str = "Internal server error",
        code: int = 500,
        data: dict = None
    ):
        self.message = message
        self.code = code
        self.data = data
        super().__init__(self.message)


class ValidationException(AppException):
    """Missing or malformed input"""

    error = "validation_error"

    def __init__(self, message: str = "Invalid request parameters"):
        super().__init__(message=message, code=400)


class AuthenticationException(AppException):
    """Missing, invalid or expired credentials"""

    error = "authentication_error"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, code=401)


class AuthorizationException(AppException):
    """Role or ownership mismatch"""

    error = "authorization_error"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, code=403)


class NotFoundException(AppException):
    """Resource does not exist"""

    error = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message=message, code=404)


class ConflictException(AppException):
    """Resource already exists"""

    error = "conflict"

    def __init__(self, message: str = "Resource already exists", data: dict = None):
        super().__init__(message=message, code=409, data=data)


class TransactionConflictException(ConflictException):
    """Transient write conflict, the client may retry"""

    error = "transaction_conflict"

    def __init__(self, message: str = "Write conflict, please retry the request"):
        super().__init__(message=message, data={"retryable": True})


class InternalException(AppException):
    """Unexpected failure, details stay in the log"""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, code=500)


_STATUS_ERRORS = {
    400: "validation_error",
    401: "authentication_error",
    403: "authorization_error",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Application exception handler"""
    logger.warning(f"AppException: {exc.message} | Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.code,
        content=error_response(
            message=exc.message, code=exc.code, data=exc.data, error=exc.error
        )
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP exception handler (unknown routes, wrong methods)"""
    logger.warning(f"HTTPException: {exc.detail} | Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=str(exc.detail),
            code=exc.status_code,
            error=_STATUS_ERRORS.get(exc.status_code, "http_error"),
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request validation handler"""
    errors = exc.errors()
    error_messages = []
    for error in errors:
        loc = " -> ".join(str(l) for l in error["loc"])
        error_messages.append(f"{loc}: {error['msg']}")

    message = "; ".join(error_messages)
    logger.warning(f"ValidationError: {message} | Path: {request.url.path}")

    return JSONResponse(
        status_code=400,
        content=error_response(
            message="Request validation failed",
            code=400,
            data={"errors": error_messages},
            error="validation_error",
        )
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler, the stack trace stays in the log"""
    logger.exception(f"Unhandled Exception: {exc} | Path: {request.url.path}")
    internal = InternalException()
    return JSONResponse(
        status_code=internal.code,
        content=error_response(
            message=internal.message, code=internal.code, error=internal.error
        )
    )
