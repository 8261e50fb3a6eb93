import base64

import pytest

from chikit.http import Request, ResponseRecorder
from chikit.middleware.basic_auth import basic_auth

password = "password"
wrong_password = "secret"


def _header(user, given):
    return "Basic " + base64.b64encode(f"{user}:{given}".encode()).decode()


def _ok(w, r):
    w.write("ok")


@pytest.fixture
def handler():
    return basic_auth("site", {"admin": password})(_ok)


def test_valid_credentials_pass(handler):
    w = ResponseRecorder()
    handler(w, Request(headers={"Authorization": _header("admin", password)}))
    assert w.code == 200
    assert w.text == "ok"


def test_missing_header_is_rejected(handler):
    w = ResponseRecorder()
    handler(w, Request())
    assert w.code == 401
    assert w.headers.get("WWW-Authenticate") == 'Basic realm="site"'
    assert w.text == ""


def test_wrong_password_is_rejected(handler):
    w = ResponseRecorder()
    handler(w, Request(headers={"Authorization": _header("admin", wrong_password)}))
    assert w.code == 401
    assert w.text == ""


def test_unknown_user_is_rejected(handler):
    w = ResponseRecorder()
    handler(w, Request(headers={"Authorization": _header("guest", password)}))
    assert w.code == 401


def test_malformed_header_is_rejected(handler):
    w = ResponseRecorder()
    handler(w, Request(headers={"Authorization": "Basic token"}))
    assert w.code == 401
    assert w.headers.values("WWW-Authenticate") == ['Basic realm="site"']