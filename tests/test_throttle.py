import threading
import time

import pytest

from chikit.http import Request, ResponseRecorder
from chikit.middleware.throttle import (
    ERR_CAPACITY_EXCEEDED,
    ERR_CONTEXT_CANCELED,
    ERR_TIMED_OUT,
    ThrottleOpts,
    throttle,
    throttle_backlog,
    throttle_with_opts,
)

TEST_CONTENT = b"Hello world!"


class _Blocking:
    def __init__(self):
        self.entered = threading.Semaphore(0)
        self.release = threading.Event()

    def __call__(self, w, r):
        w.write_header(200)
        self.entered.release()
        self.release.wait(5)
        w.write(TEST_CONTENT)


def _serve_in_thread(handler, request=None):
    rec = ResponseRecorder()
    thread = threading.Thread(target=handler, args=(rec, request or Request()))
    thread.start()
    return rec, thread


def test_capacity_exceeded():
    app = _Blocking()
    handler = throttle_backlog(1, 0, 5.0)(app)
    first, thread = _serve_in_thread(handler)
    assert app.entered.acquire(timeout=2)

    rec = ResponseRecorder()
    handler(rec, Request())
    assert rec.code == 429
    assert rec.text.strip() == ERR_CAPACITY_EXCEEDED

    app.release.set()
    thread.join(5)
    assert (first.code, bytes(first.body)) == (200, TEST_CONTENT)


def test_backlog_timeout():
    app = _Blocking()
    handler = throttle_backlog(1, 1, 0.05)(app)
    first, thread = _serve_in_thread(handler)
    assert app.entered.acquire(timeout=2)

    rec = ResponseRecorder()
    handler(rec, Request())
    assert rec.code == 429
    assert rec.text.strip() == ERR_TIMED_OUT

    app.release.set()
    thread.join(5)
    assert first.code == 200


def test_backlog_waits_for_token():
    app = _Blocking()
    handler = throttle_backlog(1, 1, 5.0)(app)
    first, t1 = _serve_in_thread(handler)
    assert app.entered.acquire(timeout=2)
    second, t2 = _serve_in_thread(handler)
    time.sleep(0.05)
    app.release.set()
    t1.join(5)
    t2.join(5)
    assert bytes(first.body) == TEST_CONTENT
    assert (second.code, bytes(second.body)) == (200, TEST_CONTENT)


def test_sequential_requests_release_tokens():
    def handler(w, r):
        w.write(TEST_CONTENT)

    wrapped = throttle(1)(handler)
    for _ in range(3):
        rec = ResponseRecorder()
        wrapped(rec, Request())
        assert bytes(rec.body) == TEST_CONTENT


def test_canceled_before_start():
    called = []
    r = Request()
    r.done.set()
    rec = ResponseRecorder()
    throttle(1)(lambda w, req: called.append(True))(rec, r)
    assert rec.code == 429
    assert rec.text.strip() == ERR_CONTEXT_CANCELED
    assert called == []


def test_canceled_while_in_backlog_sets_retry_after():
    calls = []

    def retry_after(ctx_done):
        calls.append(ctx_done)
        return 3600

    app = _Blocking()
    handler = throttle_with_opts(
        ThrottleOpts(limit=1, backlog_limit=1, backlog_timeout=5.0, retry_after_fn=retry_after)
    )(app)
    _, t1 = _serve_in_thread(handler)
    assert app.entered.acquire(timeout=2)

    r2 = Request()
    second, t2 = _serve_in_thread(handler, r2)
    r2.done.set()
    t2.join(5)
    assert second.code == 429
    assert second.text.strip() == ERR_CONTEXT_CANCELED
    assert second.headers.get("Retry-After") == "3600"
    assert calls == [True]

    app.release.set()
    t1.join(5)


def test_retry_after_on_capacity():
    calls = []

    def retry_after(ctx_done):
        calls.append(ctx_done)
        return 3600

    app = _Blocking()
    handler = throttle_with_opts(ThrottleOpts(limit=1, retry_after_fn=retry_after))(app)
    _, thread = _serve_in_thread(handler)
    assert app.entered.acquire(timeout=2)
    rec = ResponseRecorder()
    handler(rec, Request())
    assert rec.headers.get("Retry-After") == "3600"
    assert calls == [False]
    app.release.set()
    thread.join(5)


@pytest.mark.parametrize("opts", [ThrottleOpts(limit=0), ThrottleOpts(limit=1, backlog_limit=-1)])
def test_invalid_options(opts):
    with pytest.raises(ValueError):
        throttle_with_opts(opts)