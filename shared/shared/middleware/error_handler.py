import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _error_body(exc: StarletteHTTPException) -> dict:
    detail = exc.detail
    if isinstance(detail, str):
        return {"code": detail, "message": detail}
    if isinstance(detail, dict):
        # Structured details (e.g. quota payloads) keep their fields for the client.
        message = str(detail.get("message", "http_error"))
        return {"code": message, "message": message, "details": detail}
    return {"code": "http_error", "message": str(detail)}


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except StarletteHTTPException as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": _error_body(exc),
                "request_id": getattr(request.state, "request_id", None),
            },
            headers=getattr(exc, "headers", None),
        )
    except Exception:
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {"code": "internal_error", "message": "An unexpected error occurred"},
                "request_id": getattr(request.state, "request_id", None),
            },
        )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Same envelope for exceptions FastAPI catches before the middleware sees them."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": _error_body(exc),
            "request_id": getattr(request.state, "request_id", None),
        },
        headers=getattr(exc, "headers", None),
    )
