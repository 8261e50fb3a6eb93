"""HTTP Basic authentication middleware."""

from __future__ import annotations

import hmac
from http import HTTPStatus
from typing import Mapping

from chikit.http import Handler, Middleware, Request


def _auth_failed(w, realm: str) -> None:
    w.headers.add("WWW-Authenticate", f'Basic realm="{realm}"')
    w.write_header(HTTPStatus.UNAUTHORIZED)


def basic_auth(realm: str, creds: Mapping[str, str]) -> Middleware:
    """Require Basic credentials matching one of ``creds`` (user to password)."""

    def middleware(next_handler: Handler) -> Handler:
        def serve(w, r: Request) -> None:
            supplied = r.basic_auth()
            if supplied is None:
                _auth_failed(w, realm)
                return
            user, given = supplied
            expected = creds.get(user)
            if expected is None or not hmac.compare_digest(
                given.encode("utf-8"), expected.encode("utf-8")
            ):
                _auth_failed(w, realm)
                return
            next_handler(w, r)

        return serve

    return middleware