"""OpenAI-compatible endpoint handlers."""

import json
import logging
import time

from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from .. import __version__
from ..catalog import ModelCatalog
from ..error import (
    AuthenticationError,
    InvalidRequestError,
    MethodNotAllowedError,
    NotFoundError,
    ProxyError,
    UpstreamError,
    UpstreamUnavailable,
)
from ..upstream import UpstreamClient
from ..util.stream import filter_response_headers, relay_stream
from .auth import validate_api_key

logger = logging.getLogger(__name__)

SERVICE_NAME = "LLM Relay"


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


def error_response(error: ProxyError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=error.status_code)


async def chat_completions_handler(request: Request, upstream: UpstreamClient, api_key: str):
    """
    OpenAI-compatible chat completions endpoint.

    The request body is forwarded as-is; the upstream response (JSON or
    server-sent events) is relayed back chunk by chunk.

    Args:
        request: The incoming HTTP request
        upstream: Client for the upstream provider
        api_key: Bearer token clients must present
    """
    request_id = _request_id(request)

    if not validate_api_key(request.headers.get("authorization"), api_key):
        return error_response(AuthenticationError("Invalid API Key", request_id=request_id))

    raw_body = await request.body()
    try:
        body = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        return error_response(InvalidRequestError(
            f"Invalid JSON in request body: {str(e)}",
            request_id=request_id,
        ))
    if not isinstance(body, dict):
        return error_response(InvalidRequestError(
            "Request body must be a JSON object",
            request_id=request_id,
        ))

    stream = body.get("stream") is True
    logger.info("Chat request: %s (Stream: %s)", body.get("model"), stream)

    try:
        upstream_response = await upstream.open_chat_completion(raw_body, stream=stream)
    except UpstreamUnavailable as e:
        logger.error("Chat completion failed: %s", e)
        return error_response(UpstreamError(str(e), request_id=request_id))

    headers = filter_response_headers(upstream_response.headers.items())
    headers.setdefault("content-type", "application/json")
    if stream:
        headers.setdefault("cache-control", "no-cache")
        headers["x-accel-buffering"] = "no"

    return StreamingResponse(
        relay_stream(upstream_response, request_id or "-"),
        status_code=upstream_response.status_code,
        headers=headers,
    )


async def models_handler(request: Request, catalog: ModelCatalog):
    """List available models endpoint."""
    try:
        models = await catalog.get_models()
    except UpstreamUnavailable as e:
        return error_response(UpstreamError(
            f"Internal Server Error: {e}",
            request_id=_request_id(request),
        ))

    return JSONResponse({
        "object": "list",
        "data": [model.to_dict() for model in models],
    })


async def health_handler(request: Request):
    """Health check endpoint."""
    return JSONResponse({
        "status": "ok",
        "service": SERVICE_NAME,
        "version": __version__,
        "timestamp": int(time.time()),
    })


async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Render routing failures in the OpenAI error envelope."""
    request_id = _request_id(request)
    if exc.status_code == 404:
        error = NotFoundError("Endpoint not found. Please use /v1/...", request_id=request_id)
    elif exc.status_code == 405:
        error = MethodNotAllowedError(
            f"Method {request.method} not allowed for {request.url.path}",
            request_id=request_id,
        )
    else:
        return JSONResponse(
            {"error": {"message": exc.detail, "type": "invalid_request_error", "code": exc.status_code}},
            status_code=exc.status_code,
            headers=exc.headers,
        )
    return JSONResponse(error.to_dict(), status_code=error.status_code, headers=exc.headers)
