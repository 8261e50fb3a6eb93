"""Middleware that turns failures in handlers into a 500 response."""

from __future__ import annotations

import traceback
from http import HTTPStatus

from chikit.http import Handler, Request
from chikit.middleware.logger import get_log_entry
from chikit.middleware.pretty_stack import print_pretty_stack


class AbortHandler(Exception):
    """Raised by a handler to abort the response; never recovered."""


def recoverer(next_handler: Handler) -> Handler:
    """Log failures raised by ``next_handler`` and answer 500 Internal Server Error."""

    def serve(w, r: Request) -> None:
        try:
            next_handler(w, r)
        except AbortHandler:
            raise
        except Exception as exc:
            entry = get_log_entry(r)
            if entry is not None:
                entry.panic(exc, traceback.format_exc())
            else:
                print_pretty_stack(exc)
            w.write_header(HTTPStatus.INTERNAL_SERVER_ERROR)

    return serve