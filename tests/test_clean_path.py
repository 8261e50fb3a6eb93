import pytest

from chikit.context import new_route_context, route_context, with_route_context
from chikit.http import Request, ResponseRecorder
from chikit.middleware.clean_path import clean_path


def _serve(request):
    seen = {}

    def endpoint(w, r):
        seen["path"] = route_context(r).route_path

    clean_path(endpoint)(ResponseRecorder(), request)
    return seen["path"]


def _routed(**kwargs):
    return with_route_context(Request(**kwargs), new_route_context())


def test_double_slashes_are_collapsed():
    assert _serve(_routed(path="//users////1")) == "/users/1"


def test_single_slashes_are_kept():
    assert _serve(_routed(path="/users/1")) == "/users/1"


def test_raw_path_is_preferred():
    assert _serve(_routed(path="/a/b", raw_path="/a%2F//b")) == "/a%2F/b"


def test_existing_route_path_is_left_alone():
    rctx = new_route_context()
    rctx.route_path = "//already//set"
    request = with_route_context(Request(path="//other"), rctx)
    assert _serve(request) == "//already//set"


def test_missing_routing_context_is_an_error():
    with pytest.raises(LookupError):
        clean_path(lambda w, r: None)(ResponseRecorder(), Request(path="//x"))