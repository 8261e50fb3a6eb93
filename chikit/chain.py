"""Composition of middleware stacks into a single handler."""

from __future__ import annotations

from typing import Iterable

from chikit.http import Handler, Middleware


class Middlewares(list):
    """An ordered list of middlewares that can wrap an endpoint."""

    def handler(self, endpoint: Handler) -> ChainHandler:
        """Build a handler running every middleware in order, then ``endpoint``."""
        return ChainHandler(endpoint, self)


class ChainHandler:
    """A handler built from a middleware stack and a final endpoint."""

    def __init__(self, endpoint: Handler, middlewares: Iterable[Middleware]) -> None:
        self.endpoint = endpoint
        self.middlewares = Middlewares(middlewares)
        self._chain = _compose(self.middlewares, endpoint)

    def __call__(self, w, r) -> None:
        self._chain(w, r)


def chain(*middlewares: Middleware) -> Middlewares:
    """Collect ``middlewares`` into a :class:`Middlewares` stack."""
    return Middlewares(middlewares)


def _compose(middlewares: list[Middleware], endpoint: Handler) -> Handler:
    handler = endpoint
    for middleware in reversed(middlewares):
        handler = middleware(handler)
    return handler