"""Standard error handler: consistent error responses across all routes."""

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..csrf import CSRFError
from ..utils.logging import get_logger

logger = get_logger("middleware.error_handler")


def error_body(request: Request, error: str, **extra) -> dict:
    """Error payload shared by exception handlers and middleware rejections."""
    return {
        "success": False,
        "error": error,
        **extra,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": getattr(request.state, "request_id", None),
    }


def register_error_handlers(app: FastAPI) -> None:
    """Register standard error handlers on the app."""

    @app.exception_handler(CSRFError)
    async def csrf_exception_handler(request: Request, exc: CSRFError):
        logger.warning("csrf_rejected", code=exc.code.value, path=str(request.url.path))
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, exc.message, code=exc.code.value),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_body(request, "Validation error", errors=jsonable_errors(exc)),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            error=str(exc),
            request_id=getattr(request.state, "request_id", None),
            path=str(request.url.path),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(
                request,
                "Erro interno do servidor. Por favor, tente novamente mais tarde.",
            ),
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Strip non-serialisable context (e.g. exception objects) from errors."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
