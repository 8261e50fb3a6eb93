"""Routing context carried on each request: URL parameters and route patterns."""

from __future__ import annotations

from dataclasses import dataclass, field

from chikit.http import Request, Routes


class _ContextKey:
    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"chi context value {self.name}"

    __str__ = __repr__


ROUTE_CTX_KEY = _ContextKey("RouteContext")


@dataclass
class RouteParams:
    """Parallel lists of URL parameter names and values."""

    keys: list[str] = field(default_factory=list)
    values: list[str] = field(default_factory=list)

    def add(self, key: str, value: str) -> None:
        self.keys.append(key)
        self.values.append(value)


@dataclass
class Context:
    """Routing state tracked for a request across a stack of routers."""

    routes: Routes | None = None
    route_path: str = ""
    route_method: str = ""
    url_params: RouteParams = field(default_factory=RouteParams)
    route_patterns: list[str] = field(default_factory=list)

    def reset(self) -> None:
        """Return the context to its initial state."""
        self.routes = None
        self.route_path = ""
        self.route_method = ""
        self.route_patterns.clear()
        self.url_params.keys.clear()
        self.url_params.values.clear()

    def url_param(self, key: str) -> str:
        """Return the most recently captured value for ``key``, or ''."""
        for name, value in zip(reversed(self.url_params.keys), reversed(self.url_params.values)):
            if name == key:
                return value
        return ""

    def route_pattern(self) -> str:
        """Join the matched patterns into one, dropping inner wildcards."""
        pattern = replace_wildcards("".join(self.route_patterns))
        pattern = pattern.removesuffix("//")
        return pattern.removesuffix("/")


def replace_wildcards(pattern: str) -> str:
    """Replace every '/*/' in ``pattern`` with '/' until none remain."""
    while "/*/" in pattern:
        pattern = pattern.replace("/*/", "/")
    return pattern


def route_context(r: Request) -> Context | None:
    """Return the routing context stored on ``r``, if any."""
    value = r.value(ROUTE_CTX_KEY)
    return value if isinstance(value, Context) else None


def url_param(r: Request, key: str) -> str:
    """Return URL parameter ``key`` of ``r``, or '' when absent."""
    rctx = route_context(r)
    return rctx.url_param(key) if rctx is not None else ""


def new_route_context() -> Context:
    return Context()


def with_route_context(r: Request, rctx: Context) -> Request:
    """Return a copy of ``r`` carrying ``rctx`` as its routing context."""
    return r.with_value(ROUTE_CTX_KEY, rctx)