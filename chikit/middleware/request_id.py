"""Middleware that tags each request with a unique request ID."""

from __future__ import annotations

import base64
import itertools
import os
import socket
import threading

from chikit.http import Handler, Request
from chikit.middleware.base import ContextKey

REQUEST_ID_KEY = ContextKey("RequestID")

# Name of the header a request ID is read from; may be changed by applications.
request_id_header = "X-Request-Id"


def _make_prefix() -> str:
    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = ""
    hostname = hostname or "localhost"
    b64 = ""
    while len(b64) < 10:
        b64 = base64.b64encode(os.urandom(12)).decode("ascii")
        b64 = b64.replace("+", "").replace("/", "")
    return f"{hostname}/{b64[:10]}"


_prefix = _make_prefix()
_counter = itertools.count(1)
_counter_lock = threading.Lock()


def next_request_id() -> int:
    """Return the next number in this process's request sequence."""
    with _counter_lock:
        return next(_counter)


def request_id(next_handler: Handler) -> Handler:
    """Store the incoming request ID, or a freshly generated one, on the request."""

    def serve(w, r: Request) -> None:
        rid = r.headers.get(request_id_header)
        if not rid:
            rid = f"{_prefix}-{next_request_id():06d}"
        next_handler(w, r.with_value(REQUEST_ID_KEY, rid))

    return serve


def get_req_id(r: Request | None) -> str:
    """Return the request ID stored on ``r``, or '' if there is none."""
    if r is None:
        return ""
    value = r.value(REQUEST_ID_KEY)
    return value if isinstance(value, str) else ""