import io

import pytest

from chikit.http import ResponseRecorder
from chikit.middleware.wrap_writer import WrapResponseWriter, wrap_response_writer


class _FancyRecorder(ResponseRecorder):
    def hijack(self):
        return "conn"

    def push(self, target):
        return f"pushed {target}"

    def read_from(self, reader):
        data = reader.read()
        self.body.extend(data)
        return len(data)


class _NoFlush:
    def __init__(self):
        self.headers = {}
        self.code = 0

    def write_header(self, code):
        self.code = code

    def write(self, data):
        return len(data)


def test_http_fancy_writer_remembers_wrote_header_when_flushed():
    f = wrap_response_writer(ResponseRecorder(), 1)
    f.flush()
    assert f.wrote_header is True


def test_http2_fancy_writer_remembers_wrote_header_when_flushed():
    f = wrap_response_writer(ResponseRecorder(), 2)
    f.flush()
    assert f.wrote_header is True


def test_status_is_zero_until_written():
    ww = wrap_response_writer(ResponseRecorder(), 1)
    assert ww.status == 0
    ww.write_header(404)
    assert ww.status == 404


def test_write_header_only_once():
    rec = ResponseRecorder()
    ww = wrap_response_writer(rec, 1)
    ww.write_header(201)
    ww.write_header(500)
    assert ww.status == 201
    assert rec.code == 201


def test_write_sets_ok_and_counts_bytes():
    rec = ResponseRecorder()
    ww = wrap_response_writer(rec, 1)
    ww.write(b"hello")
    ww.write("world")
    assert ww.status == 200
    assert ww.bytes_written == 10
    assert bytes(rec.body) == b"helloworld"


def test_tee_receives_copy():
    rec = ResponseRecorder()
    ww = wrap_response_writer(rec, 1)
    copy = io.BytesIO()
    ww.tee(copy)
    ww.write(b"abc")
    assert copy.getvalue() == b"abc"
    assert bytes(rec.body) == b"abc"


def test_unwrap_returns_original():
    rec = ResponseRecorder()
    assert wrap_response_writer(rec, 1).unwrap() is rec


def test_headers_are_shared():
    rec = ResponseRecorder()
    ww = wrap_response_writer(rec, 1)
    ww.headers.set("X-Test", "yes")
    assert rec.headers.get("X-Test") == "yes"


def test_read_from_without_native_support():
    rec = ResponseRecorder()
    ww = wrap_response_writer(rec, 1)
    data = b"file data"
    n = ww.read_from(io.BytesIO(data))
    assert n == len(data)
    assert bytes(rec.body) == data
    assert ww.bytes_written == len(data)


def test_read_from_uses_native_support():
    rec = _FancyRecorder()
    ww = wrap_response_writer(rec, 1)
    n = ww.read_from(io.BytesIO(b"file data"))
    assert n == 9
    assert bytes(rec.body) == b"file data"
    assert ww.status == 200


def test_read_from_with_tee_copies_through_write():
    rec = _FancyRecorder()
    ww = wrap_response_writer(rec, 1)
    copy = io.BytesIO()
    ww.tee(copy)
    ww.read_from(io.BytesIO(b"file data"))
    assert copy.getvalue() == b"file data"
    assert ww.bytes_written == 9


def test_hijack_exposed_for_http1_only():
    assert wrap_response_writer(_FancyRecorder(), 1).hijack() == "conn"
    assert not hasattr(wrap_response_writer(_FancyRecorder(), 2), "hijack")


def test_push_exposed_for_http2_only():
    assert wrap_response_writer(_FancyRecorder(), 2).push("/a") == "pushed /a"
    assert not hasattr(wrap_response_writer(_FancyRecorder(), 1), "push")


def test_flush_without_support_raises():
    ww = WrapResponseWriter(_NoFlush(), 1)
    with pytest.raises(TypeError):
        ww.flush()