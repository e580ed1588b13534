"""FastAPI dependency injection providers."""

from fastapi import Request

from .config import LofersilConfig, get_config
from .csrf import CSRFTokenService

_config_instance: LofersilConfig | None = None


def get_app_config() -> LofersilConfig:
    """Get the process-wide config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_config()
    return _config_instance


def get_request_config(request: Request) -> LofersilConfig:
    """Config the serving app was built with."""
    return request.app.state.config


def get_csrf_service(request: Request) -> CSRFTokenService:
    """CSRF service owned by the serving app."""
    return request.app.state.csrf_service
