"""Middleware that forbids caching of responses."""

from __future__ import annotations

from email.utils import formatdate

from chikit.http import Handler, Request

EPOCH = formatdate(0, usegmt=True).replace("GMT", "UTC")

_CACHE_DIRECTIVES = (
    "no-cache",
    "no-store",
    "no-transform",
    "must-revalidate",
    "private",
    "max-age=0",
)

NO_CACHE_HEADERS = dict(
    [
        ("Expires", EPOCH),
        ("Cache-Control", ", ".join(_CACHE_DIRECTIVES)),
        ("Pragma", _CACHE_DIRECTIVES[0]),
        ("X-Accel-Expires", "0"),
    ]
)

ETAG_HEADERS = ("ETag",) + tuple(
    f"If-{condition}"
    for condition in ("Modified-Since", "Match", "None-Match", "Range", "Unmodified-Since")
)


def no_cache(next_handler: Handler) -> Handler:
    """Drop conditional request headers and set headers that prevent caching."""

    def serve(w, r: Request) -> None:
        for name in filter(r.headers.get, ETAG_HEADERS):
            r.headers.delete(name)
        for name, value in NO_CACHE_HEADERS.items():
            w.headers.set(name, value)
        next_handler(w, r)

    return serve