"""Health check route."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from ...config import LofersilConfig
from ...csrf import CSRFTokenService
from ...dependencies import get_csrf_service, get_request_config

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(
    request: Request,
    service: CSRFTokenService = Depends(get_csrf_service),
    config: LofersilConfig = Depends(get_request_config),
):
    service.cleanup_expired()
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - started_at, 3),
        "version": config.version,
        "environment": config.environment,
        "csrf": service.get_stats().to_dict(),
    }
