"""
HTTP Middleware.

Two middlewares wrap every route:

    access_log   Assigns the request id (X-Request-Id), logs one line per
                 request with method, path, status and seconds.
    rate_limit   Counts the request against the client address before any
                 route runs; answers 429 once the window is exhausted and
                 adds RateLimit-* headers to every response.

Order (outermost first):
    CORS → access_log → rate_limit → routes

so rejected requests are still logged and still carry CORS headers.
"""
from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tts_relay.api.dependencies import get_rate_limiter
from tts_relay.core.errors import RateLimitExceeded
from tts_relay.core.logging import get_logger, info, set_request_id, warn
from tts_relay.core.metrics import metrics

_LOG = get_logger("tts-relay.http")

REQUEST_ID_HEADER = "X-Request-Id"


def client_identity(request: Request) -> str:
    """Rate-limit key for a request: the remote address."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def rate_limit(request: Request, call_next):
    limiter = get_rate_limiter(request)
    if limiter is None:
        return await call_next(request)

    identity = client_identity(request)
    decision = limiter.hit(identity)

    if not decision.allowed:
        err = RateLimitExceeded(identity, decision.retry_after_s)
        warn(_LOG, "rate_limited", client=identity, retry_after=err.retry_after_s)
        metrics.record_rate_limited()
        return JSONResponse(
            status_code=err.http_status,
            content=err.to_dict(),
            headers=decision.headers(),
        )

    response = await call_next(request)
    response.headers.update(decision.headers())
    return response


async def access_log(request: Request, call_next):
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:12]
    set_request_id(rid)

    start = time.perf_counter()
    response = await call_next(request)
    seconds = round(time.perf_counter() - start, 3)

    response.headers[REQUEST_ID_HEADER] = rid
    info(_LOG, "http", method=request.method, path=request.url.path,
         status=response.status_code, seconds=seconds)
    return response


def install_middleware(app: FastAPI) -> None:
    """
    Register the relay middlewares on an app.

    Starlette runs the most recently added middleware first, so the rate
    limiter is added before the access log.
    """
    app.middleware("http")(rate_limit)
    app.middleware("http")(access_log)
