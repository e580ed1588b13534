"""CSRF token issuance route."""

from fastapi import APIRouter, Depends, Response

from ...config import LofersilConfig
from ...csrf import CSRFGenerationError, CSRFTokenService
from ...dependencies import get_csrf_service, get_request_config
from ...utils.logging import get_logger

router = APIRouter(tags=["csrf"])
logger = get_logger("api.csrf")


@router.get("/csrf-token")
async def issue_csrf_token(
    response: Response,
    service: CSRFTokenService = Depends(get_csrf_service),
    config: LofersilConfig = Depends(get_request_config),
):
    """Issue a one-time CSRF token.

    The token id goes into an HTTP-only, SameSite=Strict cookie; the token
    itself is returned for the client to echo in the form field or header.
    """
    options = service.get_config()
    try:
        service.cleanup_expired()
        issued = service.generate_token()
    except Exception as e:
        logger.error("csrf_generation_failed", error=str(e), exc_info=True)
        raise CSRFGenerationError() from e

    response.set_cookie(
        key=options.cookie_name,
        value=issued.token_id,
        max_age=max(1, options.token_expiration_ms // 1000),
        path="/",
        httponly=True,
        secure=config.is_production,
        samesite="strict",
    )
    response.headers["Cache-Control"] = "no-store"

    return {
        "success": True,
        "data": {
            "token": issued.token,
            "expires": issued.expires,
            "expiresIn": options.token_expiration_ms,
        },
    }
