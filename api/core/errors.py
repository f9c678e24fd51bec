"""
Error taxonomy and the FastAPI handlers that render it.

Every error response has the shape `{"message": str, "errors"?: [{field, message}]}`.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server Error"


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


class ApiError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RequestValidationFailed(ApiError):
    """One or more field-level constraint violations."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, violations: list[FieldViolation] | tuple[FieldViolation, ...]) -> None:
        super().__init__(message)
        self.violations = tuple(violations)


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


# Storage failures are explicit and separable from other runtime errors.
class StorageError(RuntimeError):
    pass


def _error_body(message: str, violations: tuple[FieldViolation, ...] = ()) -> dict:
    body: dict = {"message": message}
    if violations:
        body["errors"] = [asdict(v) for v in violations]
    return body


async def _validation_failed_handler(request: Request, exc: RequestValidationFailed) -> JSONResponse:
    logger.info(
        "request_rejected path=%s violations=%s",
        request.url.path,
        len(exc.violations),
    )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.violations))


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))


async def _malformed_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Only reachable when the body itself cannot be decoded; field rules are
    # checked by products.validation and raise RequestValidationFailed.
    violations = tuple(
        FieldViolation(field="body", message=str(err.get("msg", "Invalid value")))
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Invalid request body", violations),
    )


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.exception("storage_failed method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(SERVER_ERROR_MESSAGE),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(SERVER_ERROR_MESSAGE),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationFailed, _validation_failed_handler)
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _malformed_request_handler)
    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
