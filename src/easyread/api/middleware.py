"""HTTP middleware: request logging, security headers, body limits, rate limiting."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from easyread.config import RateLimitConfig
from easyread.errors import EasyReadError, PayloadTooLargeError, RateLimitExceededError

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


def error_response(exc: EasyReadError, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its status and elapsed time."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s - unhandled after %.2fms",
                method,
                path,
                (time.perf_counter() - start) * 1000.0,
            )
            raise

        logger.info(
            "%s %s - %d (%.2fms)",
            method,
            path,
            response.status_code,
            (time.perf_counter() - start) * 1000.0,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds a conservative baseline of security headers to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class JsonBodyLimitMiddleware:
    """Rejects JSON bodies larger than `max_bytes`.

    Declared lengths are refused up front; bodies without a length header are
    counted as they arrive and cut off once they pass the limit.
    """

    def __init__(self, app: ASGIApp, *, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if not headers.get("content-type", "").startswith("application/json"):
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            response = error_response(PayloadTooLargeError(self.max_bytes))
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    error = PayloadTooLargeError(self.max_bytes)
                    raise HTTPException(status_code=error.status_code, detail=error.message)
            return message

        await self.app(scope, limited_receive, send)


@dataclass(slots=True, frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: float


@dataclass(slots=True)
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    """Counts hits per key inside fixed windows of `window_seconds`.

    State lives in process memory and is discarded with the process.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        limit = self.config.max_requests
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.config.window_seconds:
                self._drop_expired(now)
                window = _Window(started_at=now, count=0)
                self._windows[key] = window
            window.count += 1
            count = window.count
            reset = max(0.0, window.started_at + self.config.window_seconds - now)

        return RateLimitDecision(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_seconds=reset,
        )

    def __len__(self) -> int:
        return len(self._windows)

    def _drop_expired(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.config.window_seconds
        ]
        for key in expired:
            del self._windows[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies a `FixedWindowRateLimiter` keyed by client host."""

    def __init__(self, app: ASGIApp, *, limiter: FixedWindowRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client_key = request.client.host if request.client else "unknown"
        decision = self.limiter.hit(client_key)
        reset = math.ceil(decision.reset_seconds)
        headers = {
            "RateLimit-Limit": str(decision.limit),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(reset),
        }

        if not decision.allowed:
            logger.warning("Rate limit exceeded client=%s path=%s", client_key, request.url.path)
            return error_response(
                RateLimitExceededError(reset),
                headers={**headers, "Retry-After": str(reset)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
