"""Exception types and the handlers registered on the FastAPI app."""
import logging
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ADMIN_FALLBACK_PATH = "/api/v1/dashboard"


class AdminAccessRedirect(Exception):
    """Raised by the admin gate; answered with a redirect to the user dashboard."""

    def __init__(self, location: str = ADMIN_FALLBACK_PATH):
        self.location = location
        super().__init__(location)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "N/A")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}",
                     extra={"request_id": _request_id(request)})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "request_id": _request_id(request)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        # ctx may hold exception instances that are not JSON serializable
        errors.append({
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg"),
            "type": error.get("type"),
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors, "request_id": _request_id(request)},
    )


async def admin_redirect_handler(request: Request, exc: AdminAccessRedirect):
    logger.info(f"Non-admin access to {request.url.path}, redirecting to {exc.location}",
                extra={"request_id": _request_id(request)})
    return RedirectResponse(url=exc.location, status_code=status.HTTP_303_SEE_OTHER)


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}",
                 exc_info=True, extra={"request_id": _request_id(request)})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "request_id": _request_id(request)},
    )
