"""Middleware that restricts the charset of request bodies."""

from __future__ import annotations

from http import HTTPStatus

from chikit.http import Handler, Middleware, Request


def split_pair(text: str, sep: str) -> tuple[str, str]:
    """Split ``text`` once on ``sep``; both halves are stripped, the second may be ''."""
    head, found, tail = text.partition(sep)
    return head.strip(), tail.strip() if found else ""


def charset_matches(content_type: str, *charsets: str) -> bool:
    """Report whether the charset of ``content_type`` is one of ``charsets``."""
    _, rest = split_pair(content_type.lower(), ";")
    _, rest = split_pair(rest, "charset=")
    charset, _ = split_pair(rest, ";")
    return charset in charsets


def content_charset(*charsets: str) -> Middleware:
    """Answer 415 unless the request charset is one of ``charsets``.

    An empty charset admits requests without Content-Type or without a charset.
    """
    allowed = tuple(charset.lower() for charset in charsets)

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            if not charset_matches(r.headers.get("Content-Type"), *allowed):
                w.write_header(HTTPStatus.UNSUPPORTED_MEDIA_TYPE)
                return
            next_handler(w, r)

        return serve

    return middleware