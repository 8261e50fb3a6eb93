"""Middleware answering a fixed health-check endpoint."""

from __future__ import annotations

from http import HTTPStatus

from chikit.http import Handler, Middleware, Request


def heartbeat(endpoint: str) -> Middleware:
    """Answer GET/HEAD requests for ``endpoint`` with a plain '.' before routing."""
    target = endpoint.casefold()

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            if r.method in ("GET", "HEAD") and r.path.casefold() == target:
                w.headers.set("Content-Type", "text/plain")
                w.write_header(HTTPStatus.OK)
                w.write(b".")
                return
            next_handler(w, r)

        return serve

    return middleware