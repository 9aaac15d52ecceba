"""
Portcullis Backend - Rate Limiting Middleware
==============================================

What:  Per-client fixed-window rate limiter guarding /auth and /users.
How:   Counts requests per client key in discrete windows held in a store.
Who:   RateLimitMiddleware picks a policy by path prefix; the lifespan
       handler runs the periodic sweep.

Algorithm: Fixed Window Counter
    For key K at time T:
    1. No entry, or entry.reset_time < T → new entry {count: 1, reset_time: T + window}
    2. Otherwise → count += 1
    3. Headers are always set, including on the rejected request:
           X-RateLimit-Limit      max requests per window
           X-RateLimit-Remaining  max(0, limit - count)
           X-RateLimit-Reset      ISO-8601 UTC end of the window
    4. count > limit → TooManyRequestsError (429)

Policies:
    /auth/*   strict    5 requests / 15 minutes
    /users/*  standard  100 requests / 15 minutes
    Everything else (/health, /docs, /api-specs, /llms.txt) is not limited.

Client key:
    First entry of X-Forwarded-For, else X-Real-IP, else the literal
    "unknown". Clients without either header share the "unknown" bucket.

Store:
    InMemoryRateLimitStore is a dict touched only from the event loop, so
    it needs no lock. It is correct for one process only; multi-worker
    deployments plug in a shared store with the same two methods
    (increment, sweep).
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional, Protocol, Sequence, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.constants import TOO_MANY_REQUESTS
from app.exceptions import AppError, TooManyRequestsError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float  # epoch seconds


class RateLimitStore(Protocol):
    def increment(self, key: str, window: float, now: float) -> RateLimitEntry: ...

    def sweep(self, now: float) -> int: ...


class InMemoryRateLimitStore:
    """Process-local store: key → RateLimitEntry."""

    def __init__(self) -> None:
        self._entries: Dict[str, RateLimitEntry] = {}

    def increment(self, key: str, window: float, now: float) -> RateLimitEntry:
        entry = self._entries.get(key)
        if entry is None or entry.reset_time < now:
            entry = RateLimitEntry(count=1, reset_time=now + window)
            self._entries[key] = entry
        else:
            entry.count += 1
        return entry

    def sweep(self, now: float) -> int:
        """Drop every entry whose window has already ended."""
        expired = [key for key, entry in self._entries.items() if entry.reset_time < now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RateLimiter:
    """
    One fixed-window policy.

    Args:
        max_requests:   Requests allowed per window
        window_seconds: Window length
        store:          Counter storage (in-memory by default)
        clock:          Returns the current epoch time in seconds
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        store: Optional[RateLimitStore] = None,
        name: str = "default",
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.name = name
        self._clock = clock

    def headers(self, entry: RateLimitEntry) -> Dict[str, str]:
        reset = datetime.fromtimestamp(entry.reset_time, tz=timezone.utc)
        return {
            "X-RateLimit-Limit": str(self.max_requests),
            "X-RateLimit-Remaining": str(max(0, self.max_requests - entry.count)),
            "X-RateLimit-Reset": reset.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }

    def hit(self, key: str, now: Optional[float] = None) -> Dict[str, str]:
        """
        Count one request for `key` and return the rate-limit headers.

        Raises:
            TooManyRequestsError: the window's budget is spent; the headers
                ride along on the error so the 429 response carries them.
        """
        now = self._clock() if now is None else now
        entry = self.store.increment(key, self.window_seconds, now)
        headers = self.headers(entry)

        if entry.count > self.max_requests:
            logger.warning(
                "Rate limit '%s' exceeded for %s: %d requests in %ds window",
                self.name,
                key,
                entry.count,
                self.window_seconds,
            )
            raise TooManyRequestsError(TOO_MANY_REQUESTS, headers=headers)
        return headers


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop, else X-Real-IP, else "unknown"."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.headers.get("x-real-ip") or "unknown"


# ── Preconfigured policies ────────────────────────────────────────────────
auth_rate_limiter = RateLimiter(
    max_requests=settings.auth_rate_limit_requests,
    window_seconds=settings.rate_limit_window,
    name="auth",
)
api_rate_limiter = RateLimiter(
    max_requests=settings.api_rate_limit_requests,
    window_seconds=settings.rate_limit_window,
    name="api",
)

DEFAULT_POLICIES: Tuple[Tuple[str, RateLimiter], ...] = (
    ("/auth", auth_rate_limiter),
    ("/users", api_rate_limiter),
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the policy whose prefix matches the request path.

    Requests matching no prefix pass straight through. A rejected request
    raises TooManyRequestsError; ErrorHandlerMiddleware (outside this one)
    turns it into the 429 envelope with the rate-limit headers.
    """

    def __init__(self, app, policies: Optional[Sequence[Tuple[str, RateLimiter]]] = None):
        super().__init__(app)
        self.policies = tuple(policies) if policies is not None else DEFAULT_POLICIES

    def limiter_for(self, path: str) -> Optional[RateLimiter]:
        for prefix, limiter in self.policies:
            if path == prefix or path.startswith(prefix + "/"):
                return limiter
        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        limiter = self.limiter_for(request.url.path)
        if limiter is None:
            return await call_next(request)

        headers = limiter.hit(client_key(request))
        try:
            response = await call_next(request)
        except AppError as exc:
            # Counted requests that fail downstream still report their budget
            exc.headers = {**headers, **exc.headers}
            raise
        response.headers.update(headers)
        return response


async def sweep_periodically(
    limiters: Iterable[RateLimiter],
    interval: float = settings.rate_limit_sweep_interval,
) -> None:
    """
    Remove expired entries from every limiter's store, forever.

    Started as a background task by the lifespan handler and cancelled on
    shutdown.
    """
    limiters = list(limiters)
    while True:
        await asyncio.sleep(interval)
        now = time.time()
        removed = sum(limiter.store.sweep(now) for limiter in limiters)
        if removed:
            logger.debug("Swept %d expired rate-limit entries", removed)
