"""Shared helpers for middlewares: context keys and handler adapters."""

from __future__ import annotations

from dataclasses import dataclass

from chikit.http import Handler, Middleware


@dataclass(frozen=True, eq=False)
class ContextKey:
    """A request-context key compared by identity."""

    name: str

    def __str__(self) -> str:
        return f"chi/middleware context value {self.name}"


def new(handler: Handler) -> Middleware:
    """Make a middleware that answers with ``handler`` and never calls the next one."""

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r) -> None:
            handler(w, r)

        return serve

    return middleware