"""Middleware that caps the number of requests processed at once."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from http import HTTPStatus
from typing import Callable

from chikit.http import Handler, Middleware, Request, http_error

ERR_CAPACITY_EXCEEDED = "Server capacity exceeded."
ERR_TIMED_OUT = "Timed out while waiting for a pending request to complete."
ERR_CONTEXT_CANCELED = "Context was canceled."

DEFAULT_BACKLOG_TIMEOUT = 60.0
_POLL_INTERVAL = 0.01


@dataclass
class ThrottleOpts:
    """Throttling options; timeouts are in seconds."""

    limit: int
    backlog_limit: int = 0
    backlog_timeout: float = 0.0
    retry_after_fn: Callable[[bool], float] | None = None


class _Throttler:
    def __init__(self, opts: ThrottleOpts) -> None:
        self.tokens = threading.Semaphore(opts.limit)
        self.backlog = threading.Semaphore(opts.limit + opts.backlog_limit)
        self.backlog_timeout = opts.backlog_timeout
        self.retry_after_fn = opts.retry_after_fn

    def reject(self, w, message: str, ctx_done: bool) -> None:
        if self.retry_after_fn is not None:
            w.headers.set("Retry-After", str(int(self.retry_after_fn(ctx_done))))
        http_error(w, message, HTTPStatus.TOO_MANY_REQUESTS)

    def wait_for_token(self, r: Request) -> tuple[str, bool] | None:
        """Acquire a processing token, or return the rejection to send."""
        deadline = time.monotonic() + self.backlog_timeout
        while True:
            remaining = deadline - time.monotonic()
            if self.tokens.acquire(timeout=max(0.0, min(_POLL_INTERVAL, remaining))):
                return None
            if r.done.is_set():
                return ERR_CONTEXT_CANCELED, True
            if time.monotonic() >= deadline:
                return ERR_TIMED_OUT, False

    def serve(self, next_handler: Handler, w, r: Request) -> None:
        if r.done.is_set():
            self.reject(w, ERR_CONTEXT_CANCELED, True)
            return
        if not self.backlog.acquire(blocking=False):
            self.reject(w, ERR_CAPACITY_EXCEEDED, False)
            return
        try:
            failure = self.wait_for_token(r)
            if failure is not None:
                self.reject(w, *failure)
                return
            try:
                next_handler(w, r)
            finally:
                self.tokens.release()
        finally:
            self.backlog.release()


def throttle_with_opts(opts: ThrottleOpts) -> Middleware:
    """Limit in-flight requests as described by ``opts``."""
    if opts.limit < 1:
        raise ValueError("throttle: expects limit > 0")
    if opts.backlog_limit < 0:
        raise ValueError("throttle: expects backlog_limit to be positive")
    throttler = _Throttler(opts)

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            throttler.serve(next_handler, w, r)

        return serve

    return middleware


def throttle(limit: int) -> Middleware:
    """Allow at most ``limit`` requests to be processed at once."""
    return throttle_with_opts(ThrottleOpts(limit=limit, backlog_timeout=DEFAULT_BACKLOG_TIMEOUT))


def throttle_backlog(limit: int, backlog_limit: int, backlog_timeout: float) -> Middleware:
    """Like :func:`throttle`, holding up to ``backlog_limit`` waiting requests."""
    return throttle_with_opts(
        ThrottleOpts(limit=limit, backlog_limit=backlog_limit, backlog_timeout=backlog_timeout)
    )