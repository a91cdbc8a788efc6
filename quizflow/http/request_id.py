"""Request correlation middleware.

Echoes the caller's X-Request-Id (or assigns one) and the quiz session key
(X-Quiz-Session) on every response, and logs one line per request.
"""

from __future__ import annotations

import logging
import time
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
SESSION_HEADER = "X-Quiz-Session"


def _header(scope, name: str) -> str | None:  # type: ignore[no-untyped-def]
    wanted = name.lower().encode("latin-1")
    for key, value in scope.get("headers") or []:
        if key.lower() == wanted:
            return value.decode("latin-1")
    return None


class RequestIdMiddleware:
    def __init__(self, app, header_name: str = REQUEST_ID_HEADER) -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = _header(scope, self.header_name) or str(uuid.uuid4())
        session_key = _header(scope, SESSION_HEADER)
        started = time.perf_counter()
        status_holder = {"status": 0}

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if message.get("type") == "http.response.start":
                status_holder["status"] = message.get("status", 0)
                headers = list(message.get("headers") or [])
                headers.append((self.header_name.encode("latin-1"), request_id.encode("latin-1")))
                if session_key:
                    headers.append((SESSION_HEADER.encode("latin-1"), session_key.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "request_done method=%s path=%s status=%s request_id=%s ms=%.1f",
                scope.get("method"),
                scope.get("path"),
                status_holder["status"],
                request_id,
                (time.perf_counter() - started) * 1000,
            )


__all__ = ["RequestIdMiddleware", "REQUEST_ID_HEADER", "SESSION_HEADER"]
