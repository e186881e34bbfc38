"""
Request logging middleware.
"""

import json
import logging
import time
import uuid

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return f"req_{uuid.uuid4().hex[:8]}"


class RequestLoggingMiddleware:
    """
    Logs one event when a request arrives and one when its response starts.

    Each request gets a request id, exposed to handlers as
    ``scope["state"]["request_id"]`` and to clients as ``X-Request-ID``.
    Streaming responses are logged when headers go out, the body may still
    be in flight at that point.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        log_responses: bool = True,
    ) -> None:
        self.app = app
        self.log_requests = log_requests
        self.log_responses = log_responses

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = generate_request_id()
        scope.setdefault("state", {})["request_id"] = request_id
        start_time = time.time()

        if self.log_requests:
            log_data = {
                "event": "request_start",
                "request_id": request_id,
                "method": scope["method"],
                "path": scope["path"],
                "client": scope["client"][0] if scope.get("client") else None,
                "timestamp": start_time,
            }
            logger.info("[REQUEST] %s", json.dumps(log_data))

        async def send_with_logging(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
                if self.log_responses:
                    log_data = {
                        "event": "request_complete",
                        "request_id": request_id,
                        "status": message["status"],
                        "duration": time.time() - start_time,
                        "timestamp": time.time(),
                    }
                    logger.info("[RESPONSE] %s", json.dumps(log_data))
            await send(message)

        await self.app(scope, receive, send_with_logging)
