"""Middleware that restricts the Content-Encoding of request bodies."""

from __future__ import annotations

from http import HTTPStatus

from chikit.http import Handler, Middleware, Request


def allow_content_encoding(*encodings: str) -> Middleware:
    """Answer 415 unless every request Content-Encoding is one of ``encodings``."""
    allowed = {encoding.strip().lower() for encoding in encodings}

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            if r.content_length == 0:
                next_handler(w, r)
                return
            for encoding in r.headers.values("Content-Encoding"):
                if encoding.strip().lower() not in allowed:
                    w.write_header(HTTPStatus.UNSUPPORTED_MEDIA_TYPE)
                    return
            next_handler(w, r)

        return serve

    return middleware