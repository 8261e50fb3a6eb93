"""Middleware that signals handlers to stop after a deadline."""

from __future__ import annotations

import threading
from dataclasses import replace
from http import HTTPStatus

from chikit.http import Handler, Middleware, Request


class _Deadline:
    def __init__(self, seconds: float, parent_done: threading.Event) -> None:
        self.done = threading.Event()
        self.exceeded = False
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        if parent_done.is_set():
            self.done.set()
        elif seconds <= 0:
            self.exceeded = True
            self.done.set()
        else:
            self._timer = threading.Timer(seconds, self._expire)
            self._timer.daemon = True
            self._timer.start()

    def _expire(self) -> None:
        with self._lock:
            if not self.done.is_set():
                self.exceeded = True
                self.done.set()

    def cancel(self) -> bool:
        """Stop the timer and report whether the deadline was reached."""
        if self._timer is not None:
            self._timer.cancel()
        with self._lock:
            self.done.set()
            return self.exceeded


def timeout(seconds: float) -> Middleware:
    """Set the request's ``done`` event after ``seconds`` and answer 504 if it fired.

    Handlers must watch ``r.done`` and return when it is set.
    """

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            deadline = _Deadline(seconds, r.done)
            try:
                next_handler(w, replace(r, done=deadline.done))
            finally:
                if deadline.cancel():
                    w.write_header(HTTPStatus.GATEWAY_TIMEOUT)

        return serve

    return middleware