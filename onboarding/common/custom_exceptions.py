from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from onboarding import logger
from onboarding.common.constants import request_id_ctx
from onboarding.common.utils import build_error, json_error
from onboarding.common.errors import AppError


def server_error_response(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )

    payload = build_error(kind="SERVER_ERROR", message="Internal server error", request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def fallback_handler(request: Request, exc: Exception):
    # reached only for errors raised outside UnhandledErrorMiddleware
    return server_error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "request.validation_failed",
        extra={
            "errors": [{"loc": e.get("loc"), "type": e.get("type")} for e in exc.errors()],
            "path": request.url.path,
        },
    )

    payload = build_error(kind="UNPROCESSABLE_ENTITY", message="Invalid request", request_id=rid)
    return json_error(payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):

    rid = request_id_ctx.get(None)

    if exc.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        kind = "RATE_LIMITED"
    else:
        kind = f"HTTP_{exc.status_code}"

    payload = build_error(kind=kind, message=exc.detail, request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def app_error_handler(request: Request, exc: AppError):

    rid = request_id_ctx.get(None)

    if exc.status_code >= 500:
        logger.error("request.failed", extra={"kind": exc.kind, "path": request.url.path})
    else:
        logger.info("request.rejected", extra={"kind": exc.kind, "path": request.url.path})

    payload = build_error(kind=exc.kind, message=exc.message, request_id=rid)
    return json_error(payload, status_code=exc.status_code)


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        Exception,  # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        HTTPException,
        http_exception_handler
    )

    app.add_exception_handler(
        AppError,
        app_error_handler
    )
