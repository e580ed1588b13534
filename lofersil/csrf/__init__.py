"""CSRF token issuance and validation."""

from .errors import (
    CSRFError,
    CSRFErrorCode,
    CSRFGenerationError,
    CSRFInvalidError,
    CSRFMissingError,
)
from .service import CSRFOptions, CSRFTokenService, IssuedToken, TokenStats
from .token_store import CSRFTokenRecord, InMemoryTokenStore, TokenStore

__all__ = [
    "CSRFError",
    "CSRFErrorCode",
    "CSRFGenerationError",
    "CSRFInvalidError",
    "CSRFMissingError",
    "CSRFOptions",
    "CSRFTokenService",
    "IssuedToken",
    "TokenStats",
    "CSRFTokenRecord",
    "InMemoryTokenStore",
    "TokenStore",
]
