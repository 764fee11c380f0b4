"""Exception handlers for TaleForger API."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from taleforger.generation import GenerationExhaustedError
from taleforger.services.errors import (
    DuplicateUserError,
    GeneratorNotConfiguredError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    ServiceError,
    StoryAccessDeniedError,
    StoryNotFoundError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base API error."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class GenerationUnavailableError(APIError):
    """Story generation failed after all retries."""

    def __init__(self, message: str, attempts: int):
        super().__init__(
            message,
            status_code=503,
            details={"attempts": attempts},
        )


SERVICE_ERROR_STATUS: dict[type[ServiceError], int] = {
    InvalidCredentialsError: 401,
    IncorrectPasswordError: 400,
    DuplicateUserError: 409,
    UserNotFoundError: 404,
    StoryNotFoundError: 404,
    StoryAccessDeniedError: 403,
    GeneratorNotConfiguredError: 503,
}


def _error_response(status_code: int, message: str, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "details": details if details is not None else {},
        },
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return _error_response(exc.status_code, exc.message, exc.details)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map service exceptions to HTTP statuses."""
    status_code = SERVICE_ERROR_STATUS.get(type(exc), 400)
    return _error_response(status_code, str(exc))


async def generation_error_handler(
    request: Request, exc: GenerationExhaustedError
) -> JSONResponse:
    """Report generation exhaustion as service unavailable."""
    return await api_error_handler(
        request, GenerationUnavailableError(str(exc), attempts=exc.attempts)
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    return _error_response(422, "Validation error", exc.errors(include_context=False))


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unexpected error", exc_info=exc)
    return _error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(GenerationExhaustedError, generation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)
