"""The Gatekeeper: per-IP rate limiting for the public API."""

from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from ..config import LofersilConfig
from ..utils.logging import get_logger
from ..utils.rate_limiter import RateLimiter

logger = get_logger("middleware.rate_limit")


@dataclass(frozen=True)
class RateLimitRule:
    """A limit on requests under ``prefix`` (empty prefix matches everything)."""

    prefix: str
    max_requests: int
    window_seconds: int
    code: str
    message: str
    retry_label: str


def _window_label(seconds: int) -> str:
    if seconds % 3600 == 0:
        hours = seconds // 3600
        return "1 hour" if hours == 1 else f"{hours} hours"
    if seconds % 60 == 0:
        minutes = seconds // 60
        return "1 minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"


def build_rules(config: LofersilConfig) -> tuple[RateLimitRule, list[RateLimitRule]]:
    """Return the global rule and the per-endpoint rules from config."""
    general = RateLimitRule(
        prefix="",
        max_requests=config.rate_limit_general_max,
        window_seconds=config.rate_limit_general_window_seconds,
        code="RATE_LIMIT_EXCEEDED",
        message="Too many requests from this IP, please try again later.",
        retry_label=_window_label(config.rate_limit_general_window_seconds),
    )
    endpoints = [
        RateLimitRule(
            prefix="/api/contact",
            max_requests=config.rate_limit_contact_max,
            window_seconds=config.rate_limit_contact_window_seconds,
            code="CONTACT_RATE_LIMIT_EXCEEDED",
            message="Too many contact form submissions. Please try again later.",
            retry_label=_window_label(config.rate_limit_contact_window_seconds),
        ),
        RateLimitRule(
            prefix="/api/csrf-token",
            max_requests=config.rate_limit_csrf_max,
            window_seconds=config.rate_limit_csrf_window_seconds,
            code="CSRF_RATE_LIMIT_EXCEEDED",
            message="Too many CSRF token requests. Please try again later.",
            retry_label=_window_label(config.rate_limit_csrf_window_seconds),
        ),
    ]
    return general, endpoints


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class GatekeeperMiddleware(BaseHTTPMiddleware):
    """Rate limits requests per client IP. Limiters belong to this instance."""

    def __init__(self, app: ASGIApp, config: LofersilConfig):
        super().__init__(app)
        self._enabled = config.rate_limit_enabled
        general, endpoints = build_rules(config)
        self._general = (general, RateLimiter(general.max_requests, general.window_seconds))
        self._endpoints = [
            (rule, RateLimiter(rule.max_requests, rule.window_seconds)) for rule in endpoints
        ]

    def _reject(self, rule: RateLimitRule, limiter: RateLimiter, key: str) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={
                "success": False,
                "error": rule.message,
                "code": rule.code,
                "retryAfter": rule.retry_label,
            },
            headers={
                "Retry-After": str(limiter.retry_after(key)),
                "X-RateLimit-Remaining": "0",
            },
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        if not self._enabled or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = get_client_ip(request)
        path = request.url.path

        rule, limiter = self._general
        if limiter.is_rate_limited(client_ip):
            logger.warning("rate_limit_global", ip=client_ip, path=path)
            return self._reject(rule, limiter, client_ip)
        limiter.record_attempt(client_ip)

        for endpoint_rule, endpoint_limiter in self._endpoints:
            if not path.startswith(endpoint_rule.prefix):
                continue
            key = f"{client_ip}:{endpoint_rule.prefix}"
            if endpoint_limiter.is_rate_limited(key):
                logger.warning("rate_limit_endpoint", ip=client_ip, path=path, prefix=endpoint_rule.prefix)
                return self._reject(endpoint_rule, endpoint_limiter, key)
            endpoint_limiter.record_attempt(key)
            break

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(limiter.remaining_attempts(client_ip))
        return response
