"""
Per-client fixed-window rate limiting.

Every endpoint shares a broad window; quote submission has its own tighter
one. Counters live in process memory and reset on restart.
"""
from __future__ import annotations
import logging
import math
import time
from threading import Lock
from typing import Callable, Dict, Tuple

from fastapi import Request

from quotedesk.errors import RateLimited

log = logging.getLogger("quotedesk.ratelimit")


class FixedWindowLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
        prune_every: int = 500,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.prune_every = max(1, prune_every)
        self._windows: Dict[str, Tuple[float, int]] = {}  # key -> (window start, hits)
        self._since_prune = 0
        self._lock = Lock()

    def hit(self, key: str) -> Tuple[bool, int]:
        """Count one request for key. Returns (allowed, seconds until the window resets)."""
        with self._lock:
            now = self.clock()
            self._since_prune += 1
            if self._since_prune >= self.prune_every:
                self._prune(now)

            start, hits = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, hits = now, 0
            hits += 1
            self._windows[key] = (start, hits)
            retry_after = max(1, math.ceil(self.window_seconds - (now - start)))
            return hits <= self.max_requests, retry_after

    def __len__(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._since_prune = 0

    def _prune(self, now: float) -> int:
        # caller holds the lock
        stale = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for k in stale:
            del self._windows[k]
        self._since_prune = 0
        return len(stale)

    def cleanup(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        with self._lock:
            return self._prune(self.clock())


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce(limiter: FixedWindowLimiter, request: Request, scope: str, message: str) -> None:
    """Raise RateLimited when this client has used up its window."""
    ip = client_key(request)
    allowed, retry_after = limiter.hit(f"{ip}:{scope}")
    if not allowed:
        log.warning("Rate limit exceeded: %s scope=%s", ip, scope, extra={"client": ip, "scope": scope})
        raise RateLimited(retry_after, message)
