"""
Exception handlers registered on the FastAPI application.

Outside production a handler for `ResponseValidationError` logs the failing
request and returns the validation details, which makes mismatches between a
route and its response model easy to spot during development.
"""
from collections.abc import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import ResponseValidationError
from fastapi.responses import JSONResponse

from modmarket.core.config import get_app_settings
from modmarket.core.root_logger import get_logger

logger = get_logger()


def log_wrapper(request: Request, exc: Exception) -> None:
    logger.error(" Start Response Validation Error ".center(80, "-"))
    logger.error(f"Request: {request.method} {request.url}")
    logger.error(f"Error Details: {exc}")
    logger.error(" End Response Validation Error ".center(80, "-"))


def register_debug_handler(app: FastAPI) -> Callable | None:
    """
    Registers the `ResponseValidationError` handler unless running in production.

    Args:
        app (FastAPI): The FastAPI application instance.

    Returns:
        Callable | None: The registered handler, or None in production.
    """
    settings = get_app_settings()

    if settings.PRODUCTION and not settings.TESTING:
        return None

    @app.exception_handler(ResponseValidationError)
    async def validation_exception_handler(request: Request, exc: ResponseValidationError) -> JSONResponse:
        log_wrapper(request, exc)

        content = {
            "detail": {
                "message": "Response validation failed",
                "errors": exc.errors(),
            }
        }
        return JSONResponse(content=content, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

    return validation_exception_handler
