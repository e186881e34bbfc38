"""
ASGI middleware applying the CORS policy.

Preflight requests (``OPTIONS`` on any path) are answered here and never
reach the router. For every other request the policy headers are overlaid on
whatever the inner application returned, including streamed responses.
"""

import logging

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..cors import CorsPolicy
from ..error import ForbiddenOriginError

logger = logging.getLogger(__name__)


class CorsMiddleware:
    def __init__(self, app: ASGIApp, policy: CorsPolicy) -> None:
        self.app = app
        self.policy = policy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_headers = Headers(scope=scope)
        origin = request_headers.get("origin")

        if scope["method"] == "OPTIONS":
            response = self.preflight_response(origin, request_headers.get("access-control-request-headers"))
            await response(scope, receive, send)
            return

        cors_headers = self.policy.headers_for(origin)
        if not cors_headers:
            await self.app(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in cors_headers.items():
                    if name == "Vary":
                        headers.add_vary_header(value)
                    else:
                        headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)

    def preflight_response(self, origin, requested_headers) -> Response:
        if not self.policy.is_allowed(origin):
            logger.warning("Rejected CORS preflight from origin %r", origin)
            error = ForbiddenOriginError(
                message="Origin not allowed",
                origin=origin,
            )
            return JSONResponse(error.to_dict(), status_code=error.status_code)
        return Response(status_code=204, headers=self.policy.headers_for(origin, requested_headers))
