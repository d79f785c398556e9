from __future__ import annotations

import enum
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorCode(enum.StrEnum):
    """Kind of failure reported to callers."""

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    BAD_INPUT = "BAD_INPUT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INTERNAL = "INTERNAL"


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    code: ErrorCode
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: ErrorCode | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ForbiddenError(AppError):
    code = ErrorCode.FORBIDDEN

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class BadInputError(AppError):
    code = ErrorCode.BAD_INPUT

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidTransitionError(AppError):
    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class InsufficientBalanceError(AppError):
    code = ErrorCode.INSUFFICIENT_BALANCE

    def __init__(self, available: float, requested: float) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient leave balance. Available: {available:g}, Requested: {requested:g}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InternalError(AppError):
    code = ErrorCode.INTERNAL


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            code=exc.code,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            code=ErrorCode.BAD_INPUT,
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


async def _database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="InternalError",
            code=ErrorCode.INTERNAL,
            detail="Unexpected persistence failure",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)  # type: ignore[arg-type]
