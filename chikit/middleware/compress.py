"""Middleware that compresses response bodies according to Accept-Encoding."""

from __future__ import annotations

import threading
import zlib
from http import HTTPStatus
from typing import Any, Callable, Iterable, Optional

from chikit.http import Handler, Headers, Middleware, Request

EncoderFunc = Callable[[Any, int], Any]

DEFAULT_COMPRESSIBLE_CONTENT_TYPES = (
    "text/html",
    "text/css",
    "text/plain",
    "text/javascript",
    "application/javascript",
    "application/x-javascript",
    "application/json",
    "application/atom+xml",
    "application/rss+xml",
    "image/svg+xml",
)

_HUFFMAN_ONLY = -2


class _Discard:
    """A writer that throws away everything written to it."""

    def write(self, data: bytes) -> int:
        return len(data)


_DISCARD = _Discard()


class _ZlibWriter:
    """Streaming zlib-family compressor writing into another writer."""

    def __init__(self, w: Any, level: int, wbits: int) -> None:
        self._level = level
        self._wbits = wbits
        self._w = w
        self._z = self._new_compressor()

    def _new_compressor(self) -> Any:
        if self._level == _HUFFMAN_ONLY:
            return zlib.compressobj(
                zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, self._wbits, strategy=zlib.Z_HUFFMAN_ONLY
            )
        return zlib.compressobj(self._level, zlib.DEFLATED, self._wbits)

    def write(self, data: bytes) -> int:
        out = self._z.compress(data)
        if out:
            self._w.write(out)
        return len(data)

    def flush(self) -> None:
        out = self._z.flush(zlib.Z_SYNC_FLUSH)
        if out:
            self._w.write(out)

    def close(self) -> None:
        out = self._z.flush(zlib.Z_FINISH)
        if out:
            self._w.write(out)

    def reset(self, w: Any) -> None:
        self._w = w
        self._z = self._new_compressor()


def _valid_level(level: int) -> bool:
    return _HUFFMAN_ONLY <= level <= 9


def _encoder_gzip(w: Any, level: int) -> Any:
    if not _valid_level(level):
        return None
    return _ZlibWriter(w, level, 16 + zlib.MAX_WBITS)


def _encoder_deflate(w: Any, level: int) -> Any:
    if not _valid_level(level):
        return None
    return _ZlibWriter(w, level, -zlib.MAX_WBITS)


class _Pool:
    """A thread-safe free list of reusable encoders."""

    def __init__(self, factory: Callable[[], Any]) -> None:
        self._factory = factory
        self._items: list[Any] = []
        self._lock = threading.Lock()

    def get(self) -> Any:
        with self._lock:
            if self._items:
                return self._items.pop()
        return self._factory()

    def put(self, item: Any) -> None:
        with self._lock:
            self._items.append(item)


def _is_resettable(encoder: Any) -> bool:
    return callable(getattr(encoder, "reset", None)) and callable(getattr(encoder, "write", None))


class _CompressResponseWriter:
    def __init__(
        self,
        w: Any,
        encoder: Any,
        content_types: set[str],
        content_wildcards: set[str],
        encoding: str,
    ) -> None:
        self._w = w
        self._encoder = encoder if encoder is not None else w
        self._content_types = content_types
        self._content_wildcards = content_wildcards
        self._encoding = encoding
        self._wrote_header = False
        self._compressable = False

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._w, name)

    @property
    def headers(self) -> Headers:
        return self._w.headers

    def _is_compressable(self) -> bool:
        content_type = self.headers.get("Content-Type").split(";", 1)[0]
        if content_type in self._content_types:
            return True
        idx = content_type.find("/")
        if idx > 0:
            return content_type[:idx] in self._content_wildcards
        return False

    def write_header(self, code: int) -> None:
        if self._wrote_header:
            self._w.write_header(code)
            return
        self._wrote_header = True
        try:
            if self.headers.get("Content-Encoding"):
                return
            if not self._is_compressable():
                self._compressable = False
                return
            if self._encoding:
                self._compressable = True
                self.headers.set("Content-Encoding", self._encoding)
                self.headers.add("Vary", "Accept-Encoding")
                self.headers.delete("Content-Length")
        finally:
            self._w.write_header(code)

    def _writer(self) -> Any:
        return self._encoder if self._compressable else self._w

    def write(self, data: bytes | str) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not self._wrote_header:
            self.write_header(HTTPStatus.OK)
        return self._writer().write(data)

    def flush(self) -> None:
        target = self._writer()
        flush = getattr(target, "flush", None)
        if flush is not None:
            flush()
        if target is not self._w:
            underlying = getattr(self._w, "flush", None)
            if underlying is not None:
                underlying()

    def hijack(self) -> Any:
        hijack = getattr(self._writer(), "hijack", None)
        if hijack is None:
            raise TypeError("hijacking is unavailable on the writer")
        return hijack()

    def push(self, target: str, opts: Any = None) -> Any:
        push = getattr(self._writer(), "push", None)
        if push is None:
            raise TypeError("server push is unavailable on the writer")
        return push(target, opts)

    def close(self) -> None:
        close = getattr(self._writer(), "close", None)
        if close is not None:
            close()


class Compressor:
    """A set of encoders and the content types they may be applied to."""

    def __init__(self, level: int, *types: str) -> None:
        self.level = level
        self.allowed_types: set[str] = set()
        self.allowed_wildcards: set[str] = set()
        if types:
            for content_type in types:
                if "*" in content_type.removesuffix("/*"):
                    raise ValueError(
                        "middleware/compress: Unsupported content-type wildcard pattern "
                        f"'{content_type}'. Only '/*' supported"
                    )
                if content_type.endswith("/*"):
                    self.allowed_wildcards.add(content_type.removesuffix("/*"))
                else:
                    self.allowed_types.add(content_type)
        else:
            self.allowed_types.update(DEFAULT_COMPRESSIBLE_CONTENT_TYPES)

        self.encoding_precedence: list[str] = []
        self._encoders: dict[str, EncoderFunc] = {}
        self._pooled: dict[str, _Pool] = {}

        # Encoders added later take precedence, so gzip is preferred over deflate.
        self.set_encoder("deflate", _encoder_deflate)
        self.set_encoder("gzip", _encoder_gzip)

    def set_encoder(self, encoding: str, fn: EncoderFunc) -> None:
        """Register ``fn`` for ``encoding`` and give it the highest precedence."""
        encoding = encoding.lower()
        if not encoding:
            raise ValueError("the encoding can not be empty")
        if fn is None:
            raise ValueError("attempted to set a nil encoder function")

        self._pooled.pop(encoding, None)
        self._encoders.pop(encoding, None)

        probe = fn(_DISCARD, self.level)
        if probe is not None and _is_resettable(probe):
            level = self.level
            self._pooled[encoding] = _Pool(lambda: fn(_DISCARD, level))
        else:
            self._encoders[encoding] = fn

        self.encoding_precedence = [encoding] + [
            name for name in self.encoding_precedence if name != encoding
        ]

    def _select_encoder(
        self, headers: Headers, w: Any
    ) -> tuple[Any, str, Optional[Callable[[], None]]]:
        """Return the encoder, its name and an optional cleanup callback."""
        accepted = headers.get("Accept-Encoding").lower().split(",")
        for name in self.encoding_precedence:
            if not _match_accept_encoding(accepted, name):
                continue
            pool = self._pooled.get(name)
            if pool is not None:
                encoder = pool.get()
                encoder.reset(w)
                return encoder, name, lambda: pool.put(encoder)
            fn = self._encoders.get(name)
            if fn is not None:
                return fn(w, self.level), name, None
        return None, "", None

    def handler(self, next_handler: Handler) -> Handler:
        """Wrap ``next_handler`` so that its responses are compressed."""

        def serve(w, r: Request) -> None:
            encoder, encoding, cleanup = self._select_encoder(r.headers, w)
            cw = _CompressResponseWriter(
                w, encoder, self.allowed_types, self.allowed_wildcards, encoding
            )
            try:
                next_handler(cw, r)
            finally:
                try:
                    cw.close()
                finally:
                    if cleanup is not None:
                        cleanup()

        return serve


def _match_accept_encoding(accepted: Iterable[str], encoding: str) -> bool:
    return any(encoding in value for value in accepted)


def compress(level: int, *types: str) -> Middleware:
    """Compress responses of ``types`` (or the defaults) at ``level``."""
    return Compressor(level, *types).handler