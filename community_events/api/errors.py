"""
Turns domain errors into `{"success": false, "error": kind, "message": ...}`.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from community_events.core.exceptions import DomainError, ValidationError
from community_events.core.logging import get_logger

logger = get_logger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("domain_error", kind=exc.kind, message=exc.message)
    else:
        logger.info("domain_error", kind=exc.kind, message=exc.message)

    content = {"success": False, "error": exc.kind, "message": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "server_fault", "message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
