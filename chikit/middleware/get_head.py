"""Middleware that routes HEAD requests to GET handlers when no HEAD route exists."""

from __future__ import annotations

from chikit.context import new_route_context, route_context
from chikit.http import Handler, Request


def get_head(next_handler: Handler) -> Handler:
    """Serve an undefined HEAD route with the matching GET handler."""

    def serve(w, r: Request) -> None:
        if r.method == "HEAD":
            rctx = route_context(r)
            if rctx is None or rctx.routes is None:
                raise LookupError("get_head requires a routing context with routes")
            route_path = rctx.route_path or r.raw_path or r.path
            if not rctx.routes.match(new_route_context(), "HEAD", route_path):
                rctx.route_method = "GET"
                rctx.route_path = route_path
        next_handler(w, r)

    return serve