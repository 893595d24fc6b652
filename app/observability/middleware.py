from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders

from app.observability.logging import log
from app.observability.metrics import get_metrics


class RequestContextMiddleware:
    """Adds request_id context, access logs, and HTTP metrics for every request.

    The measurement window closes once the final body chunk has been sent, so
    handler-side waits (e.g. /api/slow) are included. A handler that raises
    before starting a response is recorded as a 500 and the exception is
    re-raised to the framework's error handling. That 500 is written by the
    outer ServerErrorMiddleware after this one returns, so on the crash path
    the window ends when the exception leaves the handler, not when the error
    response is sent.
    """

    def __init__(self, app: Callable[..., Any]) -> None:
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path", "")
        method = scope.get("method", "GET")
        user_agent = Headers(scope=scope).get("user-agent") or "unknown"

        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = perf_counter()
        elapsed: float | None = None
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code, elapsed

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id

            await send(message)

            if message.get("type") == "http.response.body" and not message.get("more_body", False):
                elapsed = perf_counter() - start

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = elapsed if elapsed is not None else perf_counter() - start

            # Update metrics first so they update even if logging misbehaves.
            metrics = get_metrics()
            metrics.observe_duration(method, path, status_code, duration)
            metrics.increment_request(method, path, status_code)

            log(
                "info",
                f"{method} {path} {status_code}",
                {
                    "method": method,
                    "route": path,
                    "statusCode": str(status_code),
                    "duration": f"{duration:.3f}",
                    "userAgent": user_agent,
                },
            )

            structlog.contextvars.clear_contextvars()
