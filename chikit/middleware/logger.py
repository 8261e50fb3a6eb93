"""Request logging middleware with pluggable formatters."""

from __future__ import annotations

import abc
import io
import sys
import time
from dataclasses import dataclass
from typing import Any

from chikit.http import Handler, Headers, Middleware, Request
from chikit.middleware.base import ContextKey
from chikit.middleware.pretty_stack import print_pretty_stack
from chikit.middleware.request_id import get_req_id
from chikit.middleware.terminal import Color, color_write
from chikit.middleware.wrap_writer import wrap_response_writer

LOG_ENTRY_CTX_KEY = ContextKey("LogEntry")


class LogEntry(abc.ABC):
    """Records the final log line once a request completes."""

    @abc.abstractmethod
    def write(self, status: int, nbytes: int, header: Headers, elapsed: float, extra: Any) -> None:
        """Log the outcome of a request; ``elapsed`` is in seconds."""

    @abc.abstractmethod
    def panic(self, value: Any, stack: Any) -> None:
        """Log a failure raised while serving the request."""


class LogFormatter(abc.ABC):
    """Starts a new :class:`LogEntry` for each request."""

    @abc.abstractmethod
    def new_log_entry(self, r: Request) -> LogEntry:
        """Create the log entry for ``r``."""


def _trim(value: float, places: int) -> str:
    return f"{value:.{places}f}".rstrip("0").rstrip(".")


def _format_duration(seconds: float) -> str:
    ns = round(seconds * 1e9)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_trim(ns / 1e3, 3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_trim(ns / 1e6, 6)}ms"
    hours, rest = divmod(ns, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    text = _trim(rest / 1e9, 9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{text}"
    if minutes:
        return f"{sign}{minutes}m{text}"
    return sign + text


class _StdoutLogger:
    """Writes timestamped lines to the current standard output."""

    def info(self, message: str) -> None:
        stamp = time.strftime("%Y/%m/%d %H:%M:%S")
        sys.stdout.write(f"{stamp} {message}\n")


class _DefaultLogEntry(LogEntry):
    def __init__(self, logger: Any, buf: io.StringIO, use_color: bool) -> None:
        self._logger = logger
        self._buf = buf
        self._use_color = use_color

    def write(self, status: int, nbytes: int, header: Headers, elapsed: float, extra: Any) -> None:
        if status < 200:
            color = Color.B_BLUE
        elif status < 300:
            color = Color.B_GREEN
        elif status < 400:
            color = Color.B_CYAN
        elif status < 500:
            color = Color.B_YELLOW
        else:
            color = Color.B_RED
        color_write(self._buf, self._use_color, color, f"{status:03d}")
        color_write(self._buf, self._use_color, Color.B_BLUE, f" {nbytes}B")
        self._buf.write(" in ")
        if elapsed < 0.5:
            color = Color.N_GREEN
        elif elapsed < 5:
            color = Color.N_YELLOW
        else:
            color = Color.N_RED
        color_write(self._buf, self._use_color, color, _format_duration(elapsed))
        self._logger.info(self._buf.getvalue())

    def panic(self, value: Any, stack: Any) -> None:
        print_pretty_stack(value)


@dataclass
class DefaultLogFormatter(LogFormatter):
    """Plain one-line request logger; ``logger`` needs an ``info(message)`` method."""

    logger: Any
    no_color: bool = False

    def new_log_entry(self, r: Request) -> LogEntry:
        use_color = not self.no_color
        buf = io.StringIO()
        rid = get_req_id(r)
        if rid:
            color_write(buf, use_color, Color.N_YELLOW, f"[{rid}] ")
        color_write(buf, use_color, Color.N_CYAN, '"')
        color_write(buf, use_color, Color.B_MAGENTA, f"{r.method} ")
        scheme = "https" if r.tls else "http"
        color_write(buf, use_color, Color.N_CYAN, f'{scheme}://{r.host}{r.request_uri} {r.proto}" ')
        buf.write(f"from {r.remote_addr} - ")
        return _DefaultLogEntry(self.logger, buf, use_color)


def get_log_entry(r: Request) -> LogEntry | None:
    """Return the log entry stored on ``r``, if any."""
    entry = r.value(LOG_ENTRY_CTX_KEY)
    return entry if isinstance(entry, LogEntry) else None


def with_log_entry(r: Request, entry: LogEntry) -> Request:
    """Return a copy of ``r`` carrying ``entry``."""
    return r.with_value(LOG_ENTRY_CTX_KEY, entry)


def request_logger(formatter: LogFormatter) -> Middleware:
    """Make a logging middleware that uses ``formatter`` for each request."""

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            entry = formatter.new_log_entry(r)
            ww = wrap_response_writer(w, r.proto_major)
            started = time.perf_counter()
            try:
                next_handler(ww, with_log_entry(r, entry))
            finally:
                entry.write(
                    ww.status, ww.bytes_written, ww.headers, time.perf_counter() - started, None
                )

        return serve

    return middleware


default_logger: Middleware = request_logger(
    DefaultLogFormatter(_StdoutLogger(), no_color=sys.platform.startswith("win"))
)


def logger(next_handler: Handler) -> Handler:
    """Log the start and end of each request with the default logger."""
    return default_logger(next_handler)