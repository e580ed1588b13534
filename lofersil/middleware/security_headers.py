"""The Shield Wall: security headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Responses that must never be cached by browsers or proxies
NO_STORE_PATHS = {"/api/csrf-token"}


class ShieldWallMiddleware(BaseHTTPMiddleware):
    """Injects security headers into every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "img-src 'self' data:; "
            "style-src 'self' 'unsafe-inline'; "
            "frame-ancestors 'none'"
        )

        path = request.url.path
        if request.method != "GET" or path in NO_STORE_PATHS:
            response.headers["Cache-Control"] = "no-store"
        elif path == "/api/health":
            response.headers["Cache-Control"] = "no-cache"

        return response
