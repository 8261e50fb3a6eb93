from chikit.http import Request, ResponseRecorder
from chikit.middleware.route_headers import HeaderRoute, Pattern, route_headers


def _tag(name):
    def middleware(next_handler):
        def serve(w, r):
            w.headers.add("X-Via", name)
            next_handler(w, r)

        return serve

    return middleware


def _endpoint(w, r):
    w.write(b"ok")


def _serve(router, **headers):
    calls = []

    def endpoint(w, r):
        calls.append(r)
        _endpoint(w, r)

    w = ResponseRecorder()
    router.handler(endpoint)(w, Request(headers=headers))
    return w, calls


def test_exact_pattern():
    pattern = Pattern("example.com")
    assert pattern.match("example.com")
    assert not pattern.match("api.example.com")


def test_wildcard_pattern():
    pattern = Pattern("*.example.com")
    assert pattern.match("api.example.com")
    assert pattern.match(".example.com")
    assert not pattern.match("example.com")


def test_header_route_any():
    header_route = HeaderRoute(match_any=[Pattern("a.test"), Pattern("b.*")])
    assert header_route.is_match("b.example")
    assert not header_route.is_match("c.test")


def test_routes_by_host():
    router = (
        route_headers()
        .route("Host", "example.com", _tag("main"))
        .route("Host", "*.example.com", _tag("sub"))
    )
    w, _ = _serve(router, Host="API.Example.com")
    assert w.headers.values("X-Via") == ["sub"]
    w, _ = _serve(router, Host="example.com")
    assert w.headers.values("X-Via") == ["main"]


def test_route_any_and_default():
    router = route_headers().route_any("Origin", ["one.test", "two.test"], _tag("known"))
    router.route_default(_tag("fallback"))
    w, _ = _serve(router, Origin="two.test")
    assert w.headers.values("X-Via") == ["known"]
    w, _ = _serve(router, Origin="three.test")
    assert w.headers.values("X-Via") == ["fallback"]


def test_no_match_without_default_calls_next_once():
    router = route_headers().route("Host", "example.com", _tag("main"))
    w, calls = _serve(router, Host="other.test")
    assert len(calls) == 1
    assert w.headers.values("X-Via") == []


def test_empty_router_calls_next_once():
    w, calls = _serve(route_headers())
    assert len(calls) == 1
    assert w.text == "ok"