"""
Error taxonomy and the FastAPI handlers that map it onto HTTP responses.

  ValidationError  400  missing / out-of-domain input, client must correct it
  NotFoundError    404  unknown entry id
  UpstreamError    502  a collaborator is unreachable or returned garbage
  ParseError       —    malformed query parameters; recovered locally

Anything else is logged with its traceback and answered with a generic 500.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class EntryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(EntryError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(EntryError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class UpstreamError(EntryError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "upstream_error"


class ParseError(EntryError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "parse_error"


def _error_body(code: str, detail) -> dict:
    return {"error": code, "detail": detail}


async def entry_error_handler(request: Request, exc: EntryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies are the client's to fix, same as store-level validation
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(ValidationError.code, errors),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(EntryError.code, "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EntryError, entry_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
