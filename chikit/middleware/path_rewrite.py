"""Middleware that rewrites part of the request path."""

from __future__ import annotations

from chikit.http import Handler, Middleware, Request


def path_rewrite(old: str, new: str) -> Middleware:
    """Replace the first occurrence of ``old`` in the request path with ``new``."""

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            r.path = r.path.replace(old, new, 1)
            next_handler(w, r)

        return serve

    return middleware