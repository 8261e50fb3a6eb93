"""A response-writer proxy that records status, byte count and an optional tee."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, BinaryIO

_COPY_CHUNK = 32 * 1024


class WrapResponseWriter:
    """Proxy around a response writer that tracks what was sent through it.

    Optional capabilities of the wrapped writer are exposed only where the
    protocol allows them: ``hijack`` for HTTP/1.x and ``push`` for HTTP/2.
    """

    def __init__(self, w: Any, proto_major: int = 1) -> None:
        self._w = w
        self._proto_major = proto_major
        self._wrote_header = False
        self._code = 0
        self._bytes = 0
        self._tee: Any = None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name == "hijack" and self._proto_major == 2:
            raise AttributeError(name)
        if name == "push" and self._proto_major != 2:
            raise AttributeError(name)
        return getattr(self._w, name)

    @property
    def headers(self) -> Any:
        return self._w.headers

    @property
    def status(self) -> int:
        """The status sent to the client, or 0 if none has been sent yet."""
        return self._code

    @property
    def bytes_written(self) -> int:
        return self._bytes

    @property
    def wrote_header(self) -> bool:
        return self._wrote_header

    def write_header(self, code: int) -> None:
        if self._wrote_header:
            return
        self._code = code
        self._wrote_header = True
        self._w.write_header(code)

    def _maybe_write_header(self) -> None:
        if not self._wrote_header:
            self.write_header(HTTPStatus.OK)

    def write(self, data: bytes | str) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._maybe_write_header()
        n = self._w.write(data)
        self._bytes += n
        if self._tee is not None:
            self._tee.write(data[:n])
        return n

    def tee(self, out: Any) -> None:
        """Also copy every written body chunk to ``out``, replacing any previous tee."""
        self._tee = out

    def unwrap(self) -> Any:
        return self._w

    def flush(self) -> None:
        flush = getattr(self._w, "flush", None)
        if flush is None:
            raise TypeError("the underlying response writer cannot flush")
        self._wrote_header = True
        flush()

    def read_from(self, reader: BinaryIO) -> int:
        """Copy everything from ``reader`` into the response body."""
        native = getattr(self._w, "read_from", None)
        if self._tee is None and native is not None and self._proto_major != 2:
            self._maybe_write_header()
            n = native(reader)
            self._bytes += n
            return n
        total = 0
        while chunk := reader.read(_COPY_CHUNK):
            total += self.write(chunk)
        return total


def wrap_response_writer(w: Any, proto_major: int) -> WrapResponseWriter:
    """Wrap ``w`` in a :class:`WrapResponseWriter` for the given protocol version."""
    return WrapResponseWriter(w, proto_major)