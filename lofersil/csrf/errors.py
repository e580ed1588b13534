"""CSRF rejection taxonomy.

Every rejection carries a stable machine-readable code and a generic,
client-safe message. The precise reason a token was refused is logged
server-side only.
"""

from enum import Enum


class CSRFErrorCode(str, Enum):
    MISSING = "CSRF_MISSING"
    INVALID = "CSRF_INVALID"
    GENERATION_ERROR = "CSRF_GENERATION_ERROR"


class CSRFError(Exception):
    """Base class for CSRF rejections surfaced to HTTP callers."""

    code: CSRFErrorCode = CSRFErrorCode.INVALID
    message: str = "Invalid or expired CSRF token"
    status_code: int = 403

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "code": self.code.value,
        }


class CSRFMissingError(CSRFError):
    """No token cookie or no submitted token on a protected request."""

    code = CSRFErrorCode.MISSING
    message = "CSRF token missing"


class CSRFInvalidError(CSRFError):
    """Token present but wrong, expired, or already consumed."""

    code = CSRFErrorCode.INVALID
    message = "Invalid or expired CSRF token"


class CSRFGenerationError(CSRFError):
    code = CSRFErrorCode.GENERATION_ERROR
    message = "Failed to generate CSRF token"
    status_code = 500
