import logging
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tictactoe.domain.errors import (
    ConflictError,
    GameError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from tictactoe.models.dc_models import ErrorModel

GENERIC_SERVER_MESSAGE = "An unexpected error occurred. Please contact support."

STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 422),
    (TransientError, 503),
)


def status_for(error: GameError) -> int:
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status_code
    return 400


def _error_response(status_code: int, reason: str, message: str, error_id: str) -> JSONResponse:
    body = ErrorModel(reason=reason, message=message, error_id=error_id)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


async def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
    # Domain rejections are expected traffic, not defects.
    error_id = str(uuid4())
    logging.warning(f"ErrorId {error_id}: {exc.reason} on {request.method} {request.url.path}: {exc.message}")
    return _error_response(status_for(exc), exc.reason, exc.message, error_id)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    error_id = str(uuid4())
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
    logging.warning(f"ErrorId {error_id}: invalid request on {request.method} {request.url.path}: {fields}")
    return _error_response(422, "INVALID_REQUEST", f"Invalid request: {fields}", error_id)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    error_id = str(uuid4())
    logging.error(f"ErrorId {error_id}: Unhandled server error", exc_info=exc)
    return _error_response(
        500, "INTERNAL_ERROR", GENERIC_SERVER_MESSAGE, error_id
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(GameError, handle_game_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
