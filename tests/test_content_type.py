import pytest

from chikit.http import Request, ResponseRecorder
from chikit.middleware.content_type import allow_content_type, set_header

BODY = b"This is my content. There are many like this but this one is mine"


def run(middleware, request):
    called = []

    def endpoint(w, r):
        called.append(True)

    rec = ResponseRecorder()
    middleware(endpoint)(rec, request)
    return rec, called


@pytest.mark.parametrize(
    "content_type, allowed, expected",
    [
        ("application/json; charset=UTF-8", ["application/json"], 200),
        ("application/json", ["application/json"], 200),
        ("application/json; foo=bar; charset=UTF-8; spam=eggs", ["application/json"], 200),
        ("text/xml; charset=UTF-8", ["application/json", "text/xml"], 200),
        ("text/plain; charset=latin-1", ["application/json"], 415),
        ("text/plain; charset=Latin-1", ["application/json", "text/xml"], 415),
    ],
)
def test_content_type(content_type, allowed, expected):
    request = Request(method="POST", body=BODY, headers={"Content-Type": content_type})
    rec, called = run(allow_content_type(*allowed), request)
    assert rec.code == expected
    assert bool(called) == (expected == 200)


def test_empty_body_skips_check():
    request = Request(method="POST", headers={"Content-Type": "text/plain"})
    rec, called = run(allow_content_type("application/json"), request)
    assert rec.code == 200
    assert called == [True]


def test_allowed_types_are_normalised():
    request = Request(method="POST", body=BODY, headers={"Content-Type": "Application/JSON"})
    rec, called = run(allow_content_type("  APPLICATION/json "), request)
    assert called == [True]


def test_set_header():
    seen = []

    def endpoint(w, r):
        seen.append(w.headers.get("X-Powered-By"))

    rec = ResponseRecorder()
    set_header("X-Powered-By", "chikit")(endpoint)(rec, Request())
    assert seen == ["chikit"]
    assert rec.headers.get("X-Powered-By") == "chikit"