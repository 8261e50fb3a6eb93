import pytest

from chikit.http import Request, ResponseRecorder
from chikit.middleware.content_charset import charset_matches, content_charset, split_pair


@pytest.mark.parametrize(
    "content_type, charsets, expected",
    [
        ("application/json; charset=UTF-8", ["UTF-8"], 200),
        ("application/json; charset=utf-8", ["UTF-8"], 200),
        ("application/json; foo=bar; charset=UTF-8; spam=eggs", ["UTF-8"], 200),
        ("text/xml; charset=UTF-8", ["UTF-8", "Latin-1"], 200),
        ("text/xml", ["UTF-8", ""], 200),
        ("text/xml", ["UTF-8"], 415),
        ("text/plain; charset=Latin-1", ["UTF-8"], 415),
        ("text/plain; charset=Latin-1", ["UTF-8", ""], 415),
    ],
)
def test_content_charset(content_type, charsets, expected):
    called = []

    def endpoint(w, r):
        called.append(True)

    rec = ResponseRecorder()
    request = Request(headers={"Content-Type": content_type})
    content_charset(*charsets)(endpoint)(rec, request)
    assert rec.code == expected
    assert bool(called) == (expected == 200)


def test_split():
    assert split_pair("  type1;type2  ", ";") == ("type1", "type2")
    assert split_pair("type1  ", ";") == ("type1", "")


def test_charset_matches():
    assert charset_matches("application/json; foo=bar; charset=utf-8; spam=eggs", "utf-8") is True
    assert charset_matches("text/plain; charset=latin-1", "utf-8") is False
    assert charset_matches("text/xml; charset=UTF-8", "latin-1", "utf-8") is True