"""
In-process sliding-window rate limiting.

Each limiter keeps the timestamps of recent hits per key (usually the client
IP) and rejects a hit once ``max_requests`` fall inside the window. State
lives in the process, so limits are per worker.

Example:
    signup_limiter = SlidingWindowRateLimiter(max_requests=10, window_seconds=900)
    limit_signup = create_rate_limit_dependency(
        lambda: signup_limiter,
        message="Too many signup attempts, try again later",
    )

    @router.post("/accounts", dependencies=[Depends(limit_signup)])
    async def register(...): ...
"""

import logging
import math
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import Request

from common.utils.exceptions import RateLimitException

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Counts hits per key over a sliding time window."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    def _prune(self, hits: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        """Drop every key whose hits have all left the window."""
        for key in list(self._hits):
            hits = self._hits[key]
            self._prune(hits, now)
            if not hits:
                del self._hits[key]
        self._last_sweep = now

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding hits."""
        return len(self._hits)

    def hit(self, key: str) -> Optional[int]:
        """
        Record a hit for ``key``.

        Keys idle for a whole window are forgotten, so memory is bounded by
        the clients seen within one window.

        Returns:
            None if the hit is allowed, otherwise the number of seconds
            until the oldest hit leaves the window
        """
        now = self._clock()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

        # Stored deques are never empty between calls
        hits = self._hits.setdefault(key, deque())
        self._prune(hits, now)

        if len(hits) >= self.max_requests:
            return max(1, math.ceil(hits[0] + self.window_seconds - now))

        hits.append(now)
        return None

    def reset(self, key: Optional[str] = None) -> None:
        """Forget hits for one key, or for every key."""
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str:
    """Extract client IP address from request."""
    if trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    if request.client:
        return request.client.host

    return "0.0.0.0"


def create_rate_limit_dependency(
    get_limiter: Callable[[], SlidingWindowRateLimiter],
    message: str = "Too many requests, try again later",
    trust_proxy_headers: Callable[[], bool] = lambda: False,
):
    """
    Factory to create a FastAPI dependency enforcing a rate limit per client IP.

    Args:
        get_limiter: Callable returning the limiter for the endpoint
        message: Error message sent with the 429 response
        trust_proxy_headers: Callable telling whether proxy headers carry the client IP
    """

    async def enforce_rate_limit(request: Request) -> None:
        client_ip = get_client_ip(request, trust_proxy_headers())
        retry_after = get_limiter().hit(client_ip)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            raise RateLimitException(message=message, retry_after=retry_after)

    return enforce_rate_limit
