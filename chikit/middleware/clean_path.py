"""Middleware that collapses duplicate slashes in the routing path."""

from __future__ import annotations

import posixpath

from chikit.context import route_context
from chikit.http import Handler, Request


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path) if path else "."
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def clean_path(next_handler: Handler) -> Handler:
    """Route ``/users//1`` or ``//users////1`` as ``/users/1``.

    The request must carry a routing context.
    """

    def serve(w, r: Request) -> None:
        rctx = route_context(r)
        if rctx is None:
            raise LookupError("clean_path requires a routing context on the request")
        if not rctx.route_path:
            rctx.route_path = _clean(r.raw_path or r.path)
        next_handler(w, r)

    return serve