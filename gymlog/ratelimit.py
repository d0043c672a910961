# =============================================================================
# Rate limiting (simple in-memory sliding window, per client IP)
# =============================================================================

from __future__ import annotations

import time
from typing import Callable, Dict, List

from fastapi import Request, Response

from .errors import RateLimitError


class RateLimiter:
    """Counts hits per key inside a sliding window. ``limit <= 0`` disables it."""

    def __init__(
        self,
        limit: int,
        window: int,
        clock: Callable[[], float] = time.time,
        max_keys: int = 1000,
    ):
        self.limit = limit
        self.window = window
        self.max_keys = max_keys
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    def hit(self, key: str) -> int:
        """Record one request for ``key`` and return how many remain in the window."""
        now = self._clock()
        window_start = now - self.window
        hits = [t for t in self._hits.pop(key, ()) if t > window_start]
        if len(hits) >= self.limit:
            self._hits[key] = hits
            raise RateLimitError("Too many requests. Try again later.")
        hits.append(now)
        self._hits[key] = hits
        # Prune stale clients to keep the store bounded
        if len(self._hits) > self.max_keys:
            self.prune(window_start)
        return self.limit - len(hits)

    def prune(self, window_start: float) -> None:
        stale = [k for k, ts in self._hits.items() if not ts or ts[-1] <= window_start]
        for k in stale:
            del self._hits[k]

    def __len__(self) -> int:
        return len(self._hits)

    def clear(self) -> None:
        self._hits.clear()


async def rate_limit(request: Request, response: Response) -> None:
    """Dependency for routes that accept credentials."""
    limiter: RateLimiter = request.app.state.rate_limiter
    if not limiter.enabled:
        return
    client_ip = request.client.host if request.client else "unknown"
    remaining = limiter.hit(client_ip)
    response.headers["X-RateLimit-Limit"] = str(limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(remaining)
