"""Header-based routing of requests through different middleware stacks."""

from __future__ import annotations

from dataclasses import dataclass, field

from chikit.http import Handler, Middleware, Request


class Pattern:
    """A header value pattern with at most one ``*`` wildcard."""

    def __init__(self, value: str) -> None:
        prefix, star, suffix = value.partition("*")
        self.wildcard = bool(star)
        self.prefix = prefix
        self.suffix = suffix

    def match(self, value: str) -> bool:
        if not self.wildcard:
            return self.prefix == value
        return (
            len(value) >= len(self.prefix) + len(self.suffix)
            and value.startswith(self.prefix)
            and value.endswith(self.suffix)
        )

    def __repr__(self) -> str:
        text = self.prefix + ("*" + self.suffix if self.wildcard else "")
        return f"Pattern({text!r})"


@dataclass
class HeaderRoute:
    """A middleware chosen when a header value matches its pattern(s)."""

    middleware: Middleware | None = None
    match_one: Pattern | None = None
    match_any: list[Pattern] = field(default_factory=list)

    def is_match(self, value: str) -> bool:
        if self.match_any:
            return any(pattern.match(value) for pattern in self.match_any)
        return self.match_one is not None and self.match_one.match(value)


class HeaderRouter(dict):
    """Maps lower-cased header names to the routes tried for them, in order."""

    def route(self, header: str, match: str, middleware: Middleware) -> HeaderRouter:
        self.setdefault(header.lower(), []).append(
            HeaderRoute(middleware=middleware, match_one=Pattern(match))
        )
        return self

    def route_any(self, header: str, matches: list[str], middleware: Middleware) -> HeaderRouter:
        patterns = [Pattern(match) for match in matches]
        self.setdefault(header.lower(), []).append(
            HeaderRoute(middleware=middleware, match_any=patterns)
        )
        return self

    def route_default(self, middleware: Middleware) -> HeaderRouter:
        self["*"] = [HeaderRoute(middleware=middleware)]
        return self

    def handler(self, next_handler: Handler) -> Handler:
        """Send each request through the first matching route's middleware."""

        def serve(w, r: Request) -> None:
            if not self:
                next_handler(w, r)
                return
            for header, routes in self.items():
                value = r.headers.get(header)
                if not value:
                    continue
                value = value.lower()
                for header_route in routes:
                    if header_route.is_match(value):
                        header_route.middleware(next_handler)(w, r)
                        return
            default = self.get("*")
            if not default or default[0].middleware is None:
                next_handler(w, r)
                return
            default[0].middleware(next_handler)(w, r)

        return serve


def route_headers() -> HeaderRouter:
    """Start an empty :class:`HeaderRouter`."""
    return HeaderRouter()