"""Middlewares dealing with request and response content types."""

from __future__ import annotations

from http import HTTPStatus

from chikit.http import Handler, Middleware, Request


def set_header(key: str, value: str) -> Middleware:
    """Set response header ``key`` to ``value`` before calling the next handler."""

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            w.headers.set(key, value)
            next_handler(w, r)

        return serve

    return middleware


def allow_content_type(*content_types: str) -> Middleware:
    """Answer 415 unless a non-empty request body has one of ``content_types``."""
    allowed = {content_type.strip().lower() for content_type in content_types}

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            if r.content_length == 0:
                next_handler(w, r)
                return
            media_type = r.headers.get("Content-Type").strip().lower().split(";", 1)[0]
            if media_type in allowed:
                next_handler(w, r)
                return
            w.write_header(HTTPStatus.UNSUPPORTED_MEDIA_TYPE)

        return serve

    return middleware