"""Middleware that serves one static GET path ahead of the router."""

from __future__ import annotations

from chikit.http import Handler, Middleware, Request


def page_route(path: str, handler: Handler) -> Middleware:
    """Answer GET requests for ``path`` (case-insensitively) with ``handler``."""
    target = path.casefold()

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            if r.method == "GET" and r.path.casefold() == target:
                handler(w, r)
                return
            next_handler(w, r)

        return serve

    return middleware