from collections import defaultdict
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import Lock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class SlidingWindowLimiter:
    """Allow at most ``limit`` hits per key within a trailing window."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self.limit = max(1, limit)
        self.window_seconds = max(1.0, float(window_seconds))
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def acquire(self, key: str) -> int | None:
        """Record a hit for ``key``.

        Returns None when the hit is allowed, otherwise the number of
        seconds until the oldest hit leaves the window.
        """

        now = self._clock()
        with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()

            if len(hits) >= self.limit:
                return max(1, int(self.window_seconds - (now - hits[0])))

            hits.append(now)
            return None


def client_key(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class StatsRateLimitMiddleware(BaseHTTPMiddleware):
    """Throttle GET requests under ``path_prefix`` per client address."""

    def __init__(
        self, app, limiter: SlidingWindowLimiter, path_prefix: str = "/stats/"
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method == "GET" and request.url.path.startswith(self.path_prefix):
            retry_after = self.limiter.acquire(client_key(request))
            if retry_after is not None:
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Too Many Requests"},
                    headers={"Retry-After": str(retry_after)},
                )

        return await call_next(request)
