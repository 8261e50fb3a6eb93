"""Request, response and header primitives shared by the router and its middlewares."""

from __future__ import annotations

import abc
import base64
import binascii
import threading
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from typing import Any, Callable, Iterable, Iterator
from urllib.parse import urlsplit

Handler = Callable[[Any, "Request"], None]
Middleware = Callable[[Handler], Handler]


def _canonical(key: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


class Headers:
    """Case-insensitive, multi-valued HTTP header map."""

    def __init__(self, initial: Any = None) -> None:
        self._data: dict[str, list[str]] = {}
        if initial:
            pairs = initial.items() if hasattr(initial, "items") else initial
            for key, value in pairs:
                if isinstance(value, (list, tuple)):
                    for item in value:
                        self.add(key, item)
                else:
                    self.add(key, value)

    def get(self, key: str) -> str:
        """Return the first value for ``key``, or an empty string."""
        values = self._data.get(_canonical(key))
        return values[0] if values else ""

    def set(self, key: str, value: str) -> None:
        self._data[_canonical(key)] = [value]

    def add(self, key: str, value: str) -> None:
        self._data.setdefault(_canonical(key), []).append(value)

    def delete(self, key: str) -> None:
        self._data.pop(_canonical(key), None)

    def values(self, key: str) -> list[str]:
        return list(self._data.get(_canonical(key), []))

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for key, values in self._data.items():
            yield key, list(values)

    def copy(self) -> Headers:
        return Headers(self.items())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _canonical(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"Headers({self._data!r})"


@dataclass
class Request:
    """An incoming HTTP request together with its request-scoped values."""

    method: str = "GET"
    path: str = "/"
    raw_query: str = ""
    raw_path: str = ""
    host: str = "example.com"
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    remote_addr: str = "192.0.2.1:1234"
    proto: str = "HTTP/1.1"
    tls: bool = False
    content_length: int | None = None
    context: dict = field(default_factory=dict)
    done: threading.Event = field(default_factory=threading.Event)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            self.headers = Headers(self.headers)
        if self.content_length is None:
            self.content_length = len(self.body)

    @property
    def proto_major(self) -> int:
        try:
            return int(self.proto.split("/", 1)[1].split(".", 1)[0])
        except (IndexError, ValueError):
            return 1

    @property
    def request_uri(self) -> str:
        uri = self.raw_path or self.path
        return f"{uri}?{self.raw_query}" if self.raw_query else uri

    def with_value(self, key: Any, value: Any) -> Request:
        """Return a shallow copy of the request carrying ``key`` = ``value``."""
        return replace(self, context={**self.context, key: value})

    def value(self, key: Any) -> Any:
        return self.context.get(key)

    def basic_auth(self) -> tuple[str, str] | None:
        """Return the user and the credential from a Basic Authorization header, if any."""
        auth = self.headers.get("Authorization")
        prefix = "Basic "
        if len(auth) < len(prefix) or auth[: len(prefix)].lower() != prefix.lower():
            return None
        try:
            decoded = base64.b64decode(auth[len(prefix):], validate=True).decode("utf-8")
        except (binascii.Error, ValueError):
            return None
        if ":" not in decoded:
            return None
        user, rest = decoded.split(":", 1)
        return user, rest


@dataclass
class ResponseRecorder:
    """Response writer that records status, headers and body in memory."""

    headers: Headers = field(default_factory=Headers)
    code: int = 200
    body: bytearray = field(default_factory=bytearray)
    wrote_header: bool = False
    flushed: bool = False

    def write_header(self, code: int) -> None:
        if not 100 <= code <= 999:
            raise ValueError(f"invalid status code {code}")
        if self.wrote_header:
            return
        self.code = code
        self.wrote_header = True

    def write(self, data: bytes | str) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not self.wrote_header:
            self.write_header(HTTPStatus.OK)
        self.body.extend(data)
        return len(data)

    def flush(self) -> None:
        if not self.wrote_header:
            self.write_header(HTTPStatus.OK)
        self.flushed = True

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


class Routes(abc.ABC):
    """A routing tree that can be searched without running a handler."""

    @abc.abstractmethod
    def match(self, rctx: Any, method: str, path: str) -> bool:
        """Report whether a handler exists for ``method`` and ``path``."""


def _clean_path(p: str) -> str:
    if not p:
        return "."
    rooted = p.startswith("/")
    parts: list[str] = []
    for segment in p.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not rooted:
                parts.append("..")
            continue
        parts.append(segment)
    cleaned = "/".join(parts)
    if rooted:
        cleaned = "/" + cleaned
    return cleaned or "."


def _hex_escape_non_ascii(text: str) -> str:
    raw = text.encode("utf-8")
    if all(b < 0x80 for b in raw):
        return text
    return "".join(chr(b) if b < 0x80 else f"%{b:x}" for b in raw)


def _html_escape(text: str) -> str:
    for old, new in (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"), ('"', "&#34;"), ("'", "&#39;")):
        text = text.replace(old, new)
    return text


def _status_text(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


def redirect(w: Any, r: Request, url: str, code: int) -> None:
    """Reply to ``r`` with a redirect to ``url``, resolving relative paths."""
    parts = urlsplit(url)
    if not parts.scheme and not parts.netloc:
        old_path = r.path or "/"
        if not url.startswith("/"):
            old_dir = old_path[: old_path.rfind("/") + 1]
            url = old_dir + url
        url, qmark, query = url.partition("?")
        trailing = url.endswith("/")
        url = _clean_path(url)
        if trailing and not url.endswith("/"):
            url += "/"
        url += qmark + query

    had_content_type = "Content-Type" in w.headers
    w.headers.set("Location", _hex_escape_non_ascii(url))
    if not had_content_type and r.method in ("GET", "HEAD"):
        w.headers.set("Content-Type", "text/html; charset=utf-8")
    w.write_header(code)
    if not had_content_type and r.method == "GET":
        w.write(f'<a href="{_html_escape(url)}">{_status_text(code)}</a>.\n\n')


def http_error(w: Any, message: str, code: int) -> None:
    """Reply with a plain-text error ``message`` and status ``code``."""
    w.headers.delete("Content-Length")
    w.headers.set("Content-Type", "text/plain; charset=utf-8")
    w.headers.set("X-Content-Type-Options", "nosniff")
    w.write_header(code)
    w.write(message + "\n")


def _iter_pairs(items: Iterable[tuple[str, str]]) -> Iterator[tuple[str, str]]:
    yield from items