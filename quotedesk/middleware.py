"""
HTTP middleware: response security headers, the global per-client rate
limit, and a one-line request trace.
"""
import logging
import time
from typing import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from quotedesk.ratelimit import FixedWindowLimiter, client_key

log = logging.getLogger("quotedesk.http")

Handler = Callable[[Request], Awaitable[Response]]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
        "font-src 'self' https://fonts.gstatic.com; "
        "script-src 'self'; img-src 'self' data:"
    ),
}

GLOBAL_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


async def security_headers(request: Request, call_next: Handler) -> Response:
    resp = await call_next(request)
    for k, v in SECURITY_HEADERS.items():
        resp.headers.setdefault(k, v)
    return resp


def global_rate_limit(limiter: FixedWindowLimiter):
    """Middleware applying limiter to every request from a client."""

    async def _limit(request: Request, call_next: Handler) -> Response:
        ip = client_key(request)
        allowed, retry_after = limiter.hit(f"{ip}:global")
        if not allowed:
            log.warning("Rate limit exceeded: %s scope=global", ip, extra={"client": ip, "scope": "global"})
            return JSONResponse(
                {"message": GLOBAL_LIMIT_MESSAGE},
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)

    return _limit


async def request_trace(request: Request, call_next: Handler) -> Response:
    started = time.perf_counter()
    resp = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    log.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, resp.status_code, elapsed_ms,
             extra={"path": request.url.path})
    return resp
