"""Middleware that sets the request's remote address from proxy headers."""

from __future__ import annotations

import ipaddress

from chikit.http import Handler, Request

_TRUE_CLIENT_IP = "True-Client-IP"
_X_REAL_IP = "X-Real-IP"
_X_FORWARDED_FOR = "X-Forwarded-For"


def _valid_ip(ip: str) -> bool:
    if not ip or "%" in ip:
        return False
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        return False
    return True


def _real_ip(r: Request) -> str:
    ip = r.headers.get(_TRUE_CLIENT_IP) or r.headers.get(_X_REAL_IP)
    if not ip:
        forwarded = r.headers.get(_X_FORWARDED_FOR)
        ip = forwarded.split(",", 1)[0] if forwarded else ""
    return ip if _valid_ip(ip) else ""


def real_ip(next_handler: Handler) -> Handler:
    """Replace ``remote_addr`` with True-Client-IP, X-Real-IP or X-Forwarded-For.

    Only use this behind a proxy whose headers can be trusted.
    """

    def serve(w, r: Request) -> None:
        ip = _real_ip(r)
        if ip:
            r.remote_addr = ip
        next_handler(w, r)

    return serve