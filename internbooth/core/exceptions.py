"""
Exception handling

Domain exceptions raised by the pipeline protocols and the global
FastAPI handlers that turn them into response envelopes
"""
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger

from .response import error_response


class AppException(Exception):
    """Base application exception"""

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


class AuthRequiredError(AppException):
    """No signed-in actor; raised before any write is attempted"""

    def __init__(self, message: str = "You must be logged in to perform this action"):
        super().__init__(message=message, code=401)


class NotFoundError(AppException):
    """A referenced document does not exist"""

    def __init__(self, message: str = "Document not found"):
        super().__init__(message=message, code=404)


class ValidationError(AppException):
    """Cross-field mismatch, malformed question bank or missing feedback"""

    def __init__(self, message: str = "Invalid request", data: dict = None):
        super().__init__(message=message, code=400, data=data)


class InvalidStateError(AppException):
    """The operation is not allowed from the document's current status"""

    def __init__(self, message: str = "Operation not allowed in the current state"):
        super().__init__(message=message, code=409)


class ConflictError(AppException):
    """Document already exists"""

    def __init__(self, message: str = "Document already exists"):
        super().__init__(message=message, code=409)


class DuplicateAssignmentError(ConflictError):
    """A test assignment already exists for the application"""

    def __init__(self, message: str = "A test is already assigned for this application"):
        super().__init__(message=message)


class TransientStoreError(AppException):
    """Transaction aborted or store unreachable; safe to retry"""

    def __init__(self, message: str = "The data store is temporarily unavailable, please retry"):
        super().__init__(message=message, code=503)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(f"{type(exc).__name__}: {exc.message} | Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.code,
        content=error_response(message=exc.message, code=exc.code, data=exc.data)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(f"HTTPException: {exc.detail} | Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message=str(exc.detail), code=exc.status_code)
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    error_messages = []
    for error in errors:
        loc = " -> ".join(str(l) for l in error["loc"])
        error_messages.append(f"{loc}: {error['msg']}")

    message = "; ".join(error_messages)
    logger.warning(f"RequestValidationError: {message} | Path: {request.url.path}")

    return JSONResponse(
        status_code=422,
        content=error_response(
            message="Request validation failed",
            code=422,
            data={"errors": error_messages}
        )
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled Exception: {exc} | Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_response(message="Internal server error", code=500)
    )
