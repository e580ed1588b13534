"""LOFERSIL landing page API.

FastAPI entry point: app factory, middleware stack, and the background
sweep that keeps the CSRF token store bounded.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.router import api_router
from .config import LofersilConfig
from .csrf import CSRFOptions, CSRFTokenService
from .dependencies import get_app_config
from .middleware.csrf import CSRFMiddleware
from .middleware.error_handler import register_error_handlers
from .middleware.rate_limit import GatekeeperMiddleware
from .middleware.request_id import RequestIDMiddleware
from .middleware.security_headers import ShieldWallMiddleware
from .utils.logging import get_logger, setup_logging

logger = get_logger("lofersil.main")


async def _csrf_cleanup_loop(service: CSRFTokenService, interval: float) -> None:
    """Sweep expired CSRF tokens every ``interval`` seconds until cancelled."""
    while True:
        try:
            await asyncio.sleep(interval)
            service.cleanup_expired()
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error("csrf_cleanup_error", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    config: LofersilConfig = app.state.config
    service: CSRFTokenService = app.state.csrf_service

    logger.info("lofersil_starting", host=config.host, port=config.port, environment=config.environment)
    if config.is_production and not config.csrf_secret:
        logger.warning(
            "csrf_secret_missing",
            detail="tokens will not survive restarts or validate across instances; set CSRF_SECRET",
        )

    app.state.cleanup_task = asyncio.create_task(
        _csrf_cleanup_loop(service, config.csrf_cleanup_interval_seconds)
    )
    logger.info("lofersil_started", app=config.app_name)

    yield

    logger.info("lofersil_shutting_down")
    task = app.state.cleanup_task
    task.cancel()
    await asyncio.wait([task], timeout=3.0)
    service.destroy()
    logger.info("lofersil_stopped")


def create_app(
    config: Optional[LofersilConfig] = None,
    csrf_service: Optional[CSRFTokenService] = None,
) -> FastAPI:
    """Build the application with its own CSRF service and rate limiters."""
    config = config or get_app_config()
    setup_logging(
        debug=config.debug,
        log_dir=config.log_dir,
        log_max_bytes=config.log_max_bytes,
        log_backup_count=config.log_backup_count,
    )

    service = csrf_service or CSRFTokenService(CSRFOptions.from_config(config))

    app = FastAPI(
        title=config.app_name,
        description="LOFERSIL landing page API",
        version=config.version,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.csrf_service = service
    app.state.started_at = time.monotonic()

    register_error_handlers(app)

    options = service.get_config()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in config.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", options.header_name, "X-Request-ID"],
    )

    # CSRF protection: double-submit token on state-changing requests
    app.add_middleware(CSRFMiddleware, service=service)

    # The Shield Wall: security headers on every response
    app.add_middleware(ShieldWallMiddleware)

    # The Gatekeeper: per-IP rate limits, checked before CSRF
    app.add_middleware(GatekeeperMiddleware, config=config)

    # Request ID: added LAST so it runs FIRST
    app.add_middleware(RequestIDMiddleware)

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "name": config.app_name,
            "version": config.version,
            "status": "operational",
        }

    return app


def main() -> None:
    config = get_app_config()
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
