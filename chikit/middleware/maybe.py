"""Middleware that applies another middleware only when a predicate holds."""

from __future__ import annotations

from typing import Callable

from chikit.http import Handler, Middleware, Request


def maybe(mw: Middleware, predicate: Callable[[Request], bool]) -> Middleware:
    """Run ``mw`` for requests where ``predicate(r)`` is true; skip it otherwise."""

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            if predicate(r):
                mw(next_handler)(w, r)
            else:
                next_handler(w, r)

        return serve

    return middleware