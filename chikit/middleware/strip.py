"""Middlewares that strip or redirect away a trailing slash."""

from __future__ import annotations

from http import HTTPStatus

from chikit.context import route_context
from chikit.http import Handler, Request, redirect


def _current_path(r: Request) -> str:
    rctx = route_context(r)
    if rctx is not None and rctx.route_path:
        return rctx.route_path
    return r.path


def strip_slashes(next_handler: Handler) -> Handler:
    """Drop a trailing slash from the routing path and keep routing."""

    def serve(w, r: Request) -> None:
        path = _current_path(r)
        if len(path) > 1 and path.endswith("/"):
            rctx = route_context(r)
            if rctx is None:
                r.path = path[:-1]
            else:
                rctx.route_path = path[:-1]
        next_handler(w, r)

    return serve


def redirect_slashes(next_handler: Handler) -> Handler:
    """Redirect permanently to the same path without its trailing slash."""

    def serve(w, r: Request) -> None:
        path = _current_path(r)
        if len(path) > 1 and path.endswith("/"):
            path = path[:-1]
            if r.raw_query:
                path = f"{path}?{r.raw_query}"
            redirect(w, r, f"//{r.host}{path}", HTTPStatus.MOVED_PERMANENTLY)
            return
        next_handler(w, r)

    return serve