"""Middleware that takes a format extension off the request path."""

from __future__ import annotations

from chikit.context import route_context
from chikit.http import Handler, Request
from chikit.middleware.base import ContextKey

URL_FORMAT_CTX_KEY = ContextKey("URLFormat")


def url_format(next_handler: Handler) -> Handler:
    """Store the path extension (``json`` of ``/a/1.json``) under ``URL_FORMAT_CTX_KEY``.

    The extension is removed from the routing path before routing continues.
    """

    def serve(w, r: Request) -> None:
        fmt = ""
        path = r.path
        if path.find(".") > 0:
            base = max(path.rfind("/"), 0)
            idx = path[base:].rfind(".")
            if idx > 0:
                idx += base
                fmt = path[idx + 1:]
                rctx = route_context(r)
                if rctx is None:
                    raise LookupError("url_format requires a routing context on the request")
                rctx.route_path = path[:idx]
        next_handler(w, r.with_value(URL_FORMAT_CTX_KEY, fmt))

    return serve