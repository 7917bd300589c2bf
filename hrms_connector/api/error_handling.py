"""
HTTP error mapping shared by all route modules.

AppError subclasses carry their own status code; anything else is an
unexpected failure and surfaces as 500 without leaking internals.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from hrms_connector.config import settings
from hrms_connector.core.errors import AppError

logger = logging.getLogger(__name__)


def http_exception(action: str, exc: Exception) -> HTTPException:
    """
    Convert an exception raised while performing `action` into an HTTPException.

    Usage:
        try:
            ...
        except Exception as e:
            raise http_exception("list employees", e)
    """
    if isinstance(exc, HTTPException):
        return exc

    if isinstance(exc, AppError):
        if exc.status_code >= 500:
            logger.error("Failed to %s: %s", action, exc)
        else:
            logger.info("Failed to %s: %s", action, exc)
        return HTTPException(status_code=exc.status_code, detail=exc.to_dict())

    logger.exception("Unexpected error while trying to %s", action)
    detail = f"Failed to {action}"
    if settings.APP_DEBUG:
        detail = f"{detail}: {exc}"
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


def register_exception_handlers(app: FastAPI) -> None:
    """Render AppErrors that escape a route as JSON."""
    app.add_exception_handler(AppError, _app_error_handler)
