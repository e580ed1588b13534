"""In-memory sliding window rate limiter."""

import time
from collections import defaultdict
from typing import Callable, Optional


class RateLimiter:
    """Sliding window rate limiter keyed by identifier (e.g., IP address)."""

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: int = 300,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._attempts: dict[str, list[float]] = defaultdict(list)

    def _prune(self, key: str, now: float) -> list[float]:
        cutoff = now - self.window_seconds
        attempts = [t for t in self._attempts[key] if t > cutoff]
        if attempts:
            self._attempts[key] = attempts
        else:
            self._attempts.pop(key, None)
        return attempts

    def is_rate_limited(self, key: str) -> bool:
        """Return True if the key has used up its window."""
        return len(self._prune(key, self._clock())) >= self.max_attempts

    def record_attempt(self, key: str) -> None:
        now = self._clock()
        attempts = self._prune(key, now)
        attempts.append(now)
        self._attempts[key] = attempts

        # Bounded cleanup of idle keys
        if len(self._attempts) > 10000:
            for k in list(self._attempts.keys())[:100]:
                self._prune(k, now)

    def remaining_attempts(self, key: str) -> int:
        return max(0, self.max_attempts - len(self._prune(key, self._clock())))

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest attempt in the window expires."""
        now = self._clock()
        attempts = self._prune(key, now)
        if len(attempts) < self.max_attempts:
            return 0
        return max(1, int(attempts[0] + self.window_seconds - now) + 1)

    def reset(self, key: str) -> None:
        self._attempts.pop(key, None)
