"""API middleware for request processing."""

import logging
import time
import uuid
from collections import defaultdict
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

_STALE_CLIENT_THRESHOLD = 300  # seconds before a silent client's entry is evicted


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its outcome and tag it with a request id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        start_time = time.monotonic()

        logger.info(
            "Request: %s %s",
            request.method,
            request.url.path,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else "unknown",
                "user_id": request.headers.get("X-User-ID"),
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.monotonic() - start_time
            logger.error(
                "Request failed after %.3fs: %s",
                process_time,
                e,
                extra={"request_id": request_id, "process_time_s": round(process_time, 3)},
            )
            raise

        process_time = time.monotonic() - start_time
        logger.info(
            "Response: %s in %.3fs",
            response.status_code,
            process_time,
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "process_time_s": round(process_time, 3),
            },
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiting per caller.

    Identified callers (``X-User-ID``) get their own window; anonymous
    traffic is counted per client address.

    Evicts stale client entries periodically to prevent unbounded memory growth.
    """

    def __init__(self, app, requests_per_window: int = 60, window_seconds: int = 60) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds
        self._request_counts: dict[str, list[float]] = defaultdict(list)
        self._last_cleanup = time.monotonic()

    def _cleanup_stale_clients(self, now: float) -> None:
        """Remove entries for clients that have not sent requests recently."""
        if now - self._last_cleanup < _STALE_CLIENT_THRESHOLD:
            return
        cutoff = now - _STALE_CLIENT_THRESHOLD
        stale = [cid for cid, ts in self._request_counts.items() if not ts or ts[-1] < cutoff]
        for cid in stale:
            del self._request_counts[cid]
        self._last_cleanup = now

    @staticmethod
    def _client_key(request: Request) -> str:
        user_id = request.headers.get("X-User-ID", "").strip()
        if user_id:
            return f"user:{user_id}"
        return f"ip:{request.client.host if request.client else 'unknown'}"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        client_id = self._client_key(request)
        now = time.monotonic()
        window_start = now - self.window_seconds

        timestamps = self._request_counts[client_id]
        self._request_counts[client_id] = [t for t in timestamps if t > window_start]

        self._cleanup_stale_clients(now)

        if len(self._request_counts[client_id]) >= self.requests_per_window:
            logger.warning("Rate limit exceeded for %s", client_id)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "RateLimitExceeded",
                    "message": "Too many requests",
                    "retry_after": self.window_seconds,
                },
                headers={"Retry-After": str(self.window_seconds)},
            )

        self._request_counts[client_id].append(now)
        return await call_next(request)
