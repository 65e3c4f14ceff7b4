"""Exception handlers rendering orchestration errors as JSON payloads."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from assistant_chat_service.platform.clients.assistants.exceptions import AssistantClientError

logger = logging.getLogger(__name__)


async def assistant_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, AssistantClientError)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "details": [
                {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
                for error in exc.errors()
            ],
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error in {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc) or type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error payload handlers to an application."""
    app.add_exception_handler(AssistantClientError, assistant_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
