"""CSRF protection middleware.

Enforces the double-submit token on state-changing requests: the token id
comes from the CSRF cookie, the token from the form/JSON body field or the
CSRF header. Tokens are consumed on first successful use.
"""

import json
from typing import Any, Optional
from urllib.parse import parse_qsl

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..csrf import CSRFError, CSRFErrorCode, CSRFTokenService
from ..csrf.service import SAFE_METHODS
from ..utils.logging import get_logger
from .error_handler import error_body

logger = get_logger("middleware.csrf")

# Paths that never carry a session-bound submission
CSRF_EXEMPT_PATHS = {
    "/api/csrf-token",
    "/api/health",
}


async def read_body_fields(request: Request) -> Optional[dict[str, Any]]:
    """Parse a JSON object or urlencoded form body; anything else yields None."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    raw = await request.body()
    if not raw:
        return None

    if content_type == "application/json" or content_type.endswith("+json"):
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            return None
        return data if isinstance(data, dict) else None

    if content_type == "application/x-www-form-urlencoded":
        try:
            return dict(parse_qsl(raw.decode("utf-8"), keep_blank_values=True))
        except UnicodeDecodeError:
            return None

    return None


class CSRFMiddleware(BaseHTTPMiddleware):
    """Validates the CSRF token on state-changing requests."""

    def __init__(self, app, service: CSRFTokenService):
        super().__init__(app)
        self._service = service

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method in SAFE_METHODS:
            return await call_next(request)

        if request.url.path in CSRF_EXEMPT_PATHS:
            return await call_next(request)

        body = await read_body_fields(request)
        try:
            self._service.verify_request(
                request.method,
                cookies=request.cookies,
                headers=request.headers,
                body=body,
            )
        except CSRFError as exc:
            event = "csrf_missing" if exc.code == CSRFErrorCode.MISSING else "csrf_invalid"
            logger.warning(event, path=request.url.path, method=request.method)
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(request, exc.message, code=exc.code.value),
            )

        return await call_next(request)
