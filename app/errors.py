import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings

LOGGER = logging.getLogger(__name__)


def error_response(
    status_code: int, message: str, headers: dict | None = None, **extra
) -> JSONResponse:
    content = {"success": False, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _field_name(location) -> str:
    parts = [str(part) for part in location if part not in ("body", "query", "path", "form")]
    return ".".join(parts)


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    if request.url.path.startswith("/api/auth/"):
        message = "Too many OTP requests. Please try again later."
    else:
        message = "Too many requests. Please try again later."
    LOGGER.warning("Rate limit hit path=%s limit=%s", request.url.path, exc.detail)
    return error_response(status.HTTP_429_TOO_MANY_REQUESTS, message)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "")}
        for error in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST, "Validation error", errors=errors
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Internal Server Error" if settings.is_production else (
        str(exc) or "Internal Server Error"
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
