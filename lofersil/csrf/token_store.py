"""CSRF token records and the storage capability behind them."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class CSRFTokenRecord:
    """One issued token. Timestamps are epoch milliseconds."""

    token_id: str
    secret: str
    token: str
    expires: int
    created_at: int

    def is_expired(self, now: int) -> bool:
        return now > self.expires


class TokenStore(Protocol):
    """Storage capability used by the token service.

    Implementations only hold records; expiry and comparison rules live in
    the service. A shared backend (e.g. a TTL key-value cache) can be
    plugged in by implementing these methods.
    """

    def put(self, token_id: str, record: CSRFTokenRecord) -> None: ...

    def get(self, token_id: str) -> Optional[CSRFTokenRecord]: ...

    def delete(self, token_id: str) -> bool: ...

    def sweep_expired(self, now: int) -> int: ...

    def records(self) -> list[CSRFTokenRecord]: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class InMemoryTokenStore:
    """Process-local token store.

    Tokens issued here do not validate on any other process or instance.
    """

    def __init__(self):
        self._tokens: dict[str, CSRFTokenRecord] = {}
        self._lock = threading.Lock()

    def put(self, token_id: str, record: CSRFTokenRecord) -> None:
        with self._lock:
            self._tokens[token_id] = record

    def get(self, token_id: str) -> Optional[CSRFTokenRecord]:
        with self._lock:
            return self._tokens.get(token_id)

    def delete(self, token_id: str) -> bool:
        with self._lock:
            return self._tokens.pop(token_id, None) is not None

    def sweep_expired(self, now: int) -> int:
        """Remove every record whose expiry lies before ``now``."""
        with self._lock:
            expired = [tid for tid, rec in self._tokens.items() if rec.expires < now]
            for tid in expired:
                del self._tokens[tid]
            return len(expired)

    def records(self) -> list[CSRFTokenRecord]:
        with self._lock:
            return list(self._tokens.values())

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
