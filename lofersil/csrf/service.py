"""CSRF token service: issuance, one-time validation, expiry and cleanup.

Tokens follow the double-submit pattern. The client receives ``token_id``
in an HTTP-only cookie and ``token`` in the response body; a protected
request must carry both. ``token`` is an HMAC-SHA256 over the id and a
per-token secret, keyed by a server-side signing key, so it cannot be
forged without that key. A token validates at most once.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..utils.logging import get_logger
from .errors import CSRFInvalidError, CSRFMissingError
from .token_store import CSRFTokenRecord, InMemoryTokenStore, TokenStore

if TYPE_CHECKING:
    from ..config import LofersilConfig

logger = get_logger("csrf.service")

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

_SIGNING_KEY_BYTES = 32


def _now_ms() -> int:
    return int(time.time() * 1000)


class CSRFOptions(BaseModel):
    """Effective CSRF configuration. Names have no effect on validation."""

    model_config = ConfigDict(frozen=True)

    token_byte_length: int = Field(default=32, ge=16)
    token_id_byte_length: int = Field(default=16, ge=16)
    token_expiration_ms: int = Field(default=60 * 60 * 1000, gt=0)
    signing_key: Optional[SecretStr] = None
    cookie_name: str = "_csrf"
    header_name: str = "x-csrf-token"
    field_name: str = "csrf_token"

    @classmethod
    def from_config(cls, config: LofersilConfig) -> CSRFOptions:
        return cls(
            token_byte_length=config.csrf_token_byte_length,
            token_id_byte_length=config.csrf_token_id_byte_length,
            token_expiration_ms=config.csrf_token_expiration_ms,
            signing_key=config.csrf_secret or None,
            cookie_name=config.csrf_cookie_name,
            header_name=config.csrf_header_name,
            field_name=config.csrf_field_name,
        )


class IssuedToken(NamedTuple):
    token_id: str
    token: str
    expires: int


@dataclass(frozen=True)
class TokenStats:
    active_tokens: int
    oldest_token: Optional[int]

    def to_dict(self) -> dict:
        return {"activeTokens": self.active_tokens, "oldestToken": self.oldest_token}


def _header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup that also works on plain dicts."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return val
    return None


class CSRFTokenService:
    """Issues and validates one-time CSRF tokens.

    Records live in a ``TokenStore`` owned by this instance (in-memory by
    default). Each instance signs with its own key unless one is supplied,
    so tokens never cross instances or process restarts in that case.
    """

    def __init__(
        self,
        options: Optional[CSRFOptions] = None,
        store: Optional[TokenStore] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._options = options or CSRFOptions()
        self._store: TokenStore = store if store is not None else InMemoryTokenStore()
        self._clock = clock or _now_ms

        if self._options.signing_key is not None:
            self._signing_key = self._options.signing_key.get_secret_value().encode("utf-8")
        else:
            self._signing_key = secrets.token_bytes(_SIGNING_KEY_BYTES)
            logger.warning(
                "csrf_secret_generated",
                detail="No CSRF_SECRET configured; tokens are valid for this process only",
            )

    def _sign(self, token_id: str, secret: str) -> str:
        return hmac.new(
            self._signing_key,
            (token_id + secret).encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def generate_token(self) -> IssuedToken:
        """Issue a new token and store its record.

        Failures of the random source propagate to the caller.
        """
        token_id = secrets.token_hex(self._options.token_id_byte_length)
        secret = secrets.token_hex(self._options.token_byte_length)
        now = self._clock()
        expires = now + self._options.token_expiration_ms
        token = self._sign(token_id, secret)

        self._store.put(
            token_id,
            CSRFTokenRecord(
                token_id=token_id,
                secret=secret,
                token=token,
                expires=expires,
                created_at=now,
            ),
        )
        logger.debug("csrf_token_issued", token_id=token_id[:8], expires=expires)
        return IssuedToken(token_id=token_id, token=token, expires=expires)

    def validate_token(self, token_id: Any, supplied_token: Any) -> bool:
        """Validate and consume a token. Never raises for bad input."""
        if not isinstance(token_id, str) or not isinstance(supplied_token, str):
            return False
        if not token_id or not supplied_token:
            return False

        record = self._store.get(token_id)
        if record is None:
            logger.debug("csrf_token_unknown", token_id=token_id[:8])
            return False

        if record.is_expired(self._clock()):
            self._store.delete(token_id)
            logger.debug("csrf_token_expired", token_id=token_id[:8])
            return False

        expected = self._sign(record.token_id, record.secret)
        if not hmac.compare_digest(expected.encode("utf-8"), supplied_token.encode("utf-8")):
            # Failed guesses do not consume the record
            logger.debug("csrf_token_mismatch", token_id=token_id[:8])
            return False

        # Only the caller whose delete succeeds wins; a concurrent replay loses
        return self._store.delete(token_id)

    def cleanup_expired(self) -> int:
        removed = self._store.sweep_expired(self._clock())
        if removed:
            logger.info("csrf_tokens_swept", removed=removed, remaining=len(self._store))
        return removed

    def get_stats(self) -> TokenStats:
        records = self._store.records()
        oldest = min((r.created_at for r in records), default=None)
        return TokenStats(active_tokens=len(records), oldest_token=oldest)

    def get_config(self) -> CSRFOptions:
        return self._options

    def verify_request(
        self,
        method: str,
        cookies: Mapping[str, str],
        headers: Mapping[str, str],
        body: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Request-validation hook for mutating HTTP requests.

        Raises CSRFMissingError when the cookie or the submitted token is
        absent, CSRFInvalidError when validation fails. Safe methods pass.
        """
        if method.upper() in SAFE_METHODS:
            return

        token_id = cookies.get(self._options.cookie_name)
        # A present non-string field value is still a submitted token
        token = (body.get(self._options.field_name) if body else None) or _header_value(
            headers, self._options.header_name
        )

        if not token_id or not token:
            raise CSRFMissingError()

        if not self.validate_token(token_id, token):
            raise CSRFInvalidError()

    def destroy(self) -> None:
        """Drop every stored record."""
        self._store.clear()
