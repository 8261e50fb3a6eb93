# chikit

A small toolkit for building HTTP services out of composable pieces:
request and response primitives, a routing context that records URL
parameters and route patterns, a way to chain middlewares, and a
collection of ready-made middlewares.

It uses only the standard library.

## Installation

```
pip install chikit
```

To run the test suite as well:

```
pip install "chikit[test]"
pytest
```

## Handlers, requests and responses

A handler is any callable that takes a response writer and a request:

```python
def hello(w, r):
    w.write(b"hello world")
```

`chikit.http` provides the pieces handlers work with:

- `Headers`: a case-insensitive, multi-valued header map with `get`,
  `set`, `add`, `delete` and `values`.
- `Request`: a dataclass holding `method`, `path`, `raw_query`,
  `raw_path`, `host`, `headers`, `body`, `remote_addr`, `proto`, `tls`,
  `content_length`, a `context` of request-scoped values and a `done`
  event. `with_value(key, value)` returns a copy carrying an extra value,
  `value(key)` reads one back, and `basic_auth()` returns the user and
  password of a Basic `Authorization` header, or `None`.
- `ResponseRecorder`: a response writer that keeps the status code,
  headers and body in memory; `text` gives the body decoded as UTF-8.
- `redirect(w, r, url, code)` and `http_error(w, message, code)` write
  redirect and plain-text error responses.
- `Routes`: an abstract base whose `match(rctx, method, path)` reports
  whether a handler exists for a method and path.

```python
from chikit.http import Request, ResponseRecorder

w = ResponseRecorder()
hello(w, Request(method="GET", path="/"))
w.code, w.text  # (200, "hello world")
```

## Chaining middlewares

A middleware is a callable that takes the next handler and returns a new
handler. `chikit.chain.chain` collects middlewares into a `Middlewares`
list; its `handler(endpoint)` builds a `ChainHandler` that runs them in
the order given, the first one seeing the request first:

```python
from chikit.chain import chain
from chikit.middleware.heartbeat import heartbeat
from chikit.middleware.nocache import no_cache
from chikit.middleware.realip import real_ip
from chikit.middleware.request_id import request_id

app = chain(request_id, real_ip, heartbeat("/ping"), no_cache).handler(hello)
app(ResponseRecorder(), Request(path="/ping"))
```

## Routing context

`chikit.context` holds the per-request routing state. A `Context` keeps
`routes`, `route_path`, `route_method`, `url_params` (a `RouteParams`)
and `route_patterns`. `with_route_context(r, rctx)` attaches one to a
request, `route_context(r)` returns it, and `url_param(r, key)` reads a
captured URL parameter (the most recently added value wins, `""` when
absent). `Context.route_pattern()` joins the pattern stack into one
pattern, dropping wildcards left in the middle:

```python
from chikit.context import new_route_context

ctx = new_route_context()
ctx.route_patterns = ["/v1/*", "/resources/*", "/{resource_id}"]
ctx.route_pattern()  # "/v1/resources/{resource_id}"
```

## Middlewares

All of these live under `chikit.middleware`:

| Module | What it does |
| --- | --- |
| `base` | `new(handler)` makes a middleware that always answers with `handler`; `ContextKey` is an identity-compared key for request values |
| `request_id` | `request_id` stores the `X-Request-Id` header, or a generated `host/random-000001` style ID, on the request; `get_req_id` reads it back; `next_request_id` returns the next sequence number |
| `realip` | `real_ip` sets `remote_addr` from `True-Client-IP`, `X-Real-IP` or the first `X-Forwarded-For` address, when it is a valid IP |
| `wrap_writer` | `wrap_response_writer(w, proto_major)` returns a `WrapResponseWriter` that records `status` and `bytes_written` and can `tee` the body elsewhere |
| `logger` | `logger` and `request_logger(formatter)` log each request with status, size and duration; `DefaultLogFormatter`, `LogFormatter` and `LogEntry` shape the output |
| `recoverer` | `recoverer` turns exceptions raised by handlers into a 500 response and prints a readable stack; `AbortHandler` is re-raised untouched |
| `pretty_stack` | `PrettyStack` and `print_pretty_stack` render a failure's stack, innermost call first |
| `terminal` | `Color` ANSI codes and `color_write`, which colours output only when standard output is a terminal |
| `basic_auth` | `basic_auth(realm, creds)` answers 401 unless the Basic credentials match |
| `throttle` | `throttle`, `throttle_backlog` and `throttle_with_opts` cap the requests in flight, answering 429 when full, timed out or cancelled |
| `timeout` | `timeout(seconds)` sets the request's `done` event at the deadline and answers 504 if it was reached |
| `heartbeat` | `heartbeat(endpoint)` answers `GET`/`HEAD` on a health-check path with `.` |
| `nocache` | `no_cache` drops conditional request headers and sets headers that stop caching |
| `compress` | `compress(level, *types)` and `Compressor` gzip or deflate responses by `Accept-Encoding` |
| `content_charset` | `content_charset(*charsets)` answers 415 for other request charsets |
| `content_encoding` | `allow_content_encoding(*encodings)` answers 415 for other request encodings |
| `content_type` | `allow_content_type(*types)` answers 415 for other content types; `set_header` sets a response header |
| `clean_path` | `clean_path` collapses double slashes in the routing path |
| `get_head` | `get_head` routes `HEAD` requests as `GET` when the routes have no `HEAD` match |
| `strip` | `strip_slashes` drops a trailing slash; `redirect_slashes` redirects (301) to the path without it |
| `url_format` | `url_format` takes an extension such as `.json` off the routing path and stores it under `URL_FORMAT_CTX_KEY` |
| `route_headers` | `route_headers()` picks a middleware by request header value, with `*` wildcards |
| `maybe` | `maybe(mw, predicate)` applies a middleware only when the predicate holds |
| `page_route` | `page_route(path, handler)` serves a `GET` path from the middleware stack |
| `path_rewrite` | `path_rewrite(old, new)` replaces the first occurrence of `old` in the request path |

### Compression

```python
from chikit.middleware.compress import Compressor

compressor = Compressor(5, "text/html", "text/*")
app = compressor.handler(hello)
```

Content types may be listed exactly or as `type/*`; any other wildcard
raises `ValueError`. With no types, a default list of text, JavaScript,
JSON, feed and SVG types is used. Responses are compressed only when
their `Content-Type` is allowed and they carry no `Content-Encoding`
already. New encoders are added with `set_encoder`, and the most
recently added encoder is preferred.

### Routing by header

```python
from chikit.middleware.route_headers import route_headers
from chikit.middleware.content_type import set_header

main_stack = set_header("X-Site", "main")
subdomain_stack = set_header("X-Site", "sub")

router = (
    route_headers()
    .route("Host", "example.com", main_stack)
    .route("Host", "*.example.com", subdomain_stack)
)
app = router.handler(hello)
```

## What is not included

There is no router here: nothing matches URL patterns, captures URL
parameters or fills in a `Context` on its own. Middlewares that read
routing state (`clean_path`, `get_head`, `url_format`, and
`strip_slashes`/`redirect_slashes` when a context is present) expect a
`Context` attached with `with_route_context` by your own routing code,
and `get_head` needs a `Routes` implementation in `Context.routes`.
There is also no HTTP server; handlers are called with a writer and a
`Request` that you supply.