"""
Shared test helper functions for the llm_relay test suite.

This module provides factory functions for fake upstream payloads and a
recording mock transport that can be imported by both conftest.py and
individual test files.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx

from llm_relay import ProxyServer, UpstreamClient


UPSTREAM_URL = "http://upstream.test/v1/openai"
TEST_API_KEY = "test-key"


def create_model(
    model_id: str,
    owned_by: str = "deepinfra",
    created: int = 1234567890,
    **extra: Any,
) -> Dict[str, Any]:
    """Factory function to create an upstream model record."""
    return {
        "id": model_id,
        "object": "model",
        "created": created,
        "owned_by": owned_by,
        **extra,
    }


def create_models_response(model_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    """Factory function to create an upstream /models payload."""
    if model_ids is None:
        model_ids = [
            "meta-llama/Meta-Llama-3.1-8B-Instruct",
            "openai/whisper-large-v3",
            "deepseek-ai/DeepSeek-V3",
        ]
    return {"object": "list", "data": [create_model(model_id) for model_id in model_ids]}


def create_chat_completion(
    model: str = "deepseek-ai/DeepSeek-V3",
    content: str = "Hello! This is a test response.",
) -> Dict[str, Any]:
    """Factory function to create a non-streaming chat completion payload."""
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "created": 1234567890,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
    }


def create_sse_body(
    model: str = "deepseek-ai/DeepSeek-V3",
    content_parts: Optional[List[str]] = None,
) -> bytes:
    """Factory function to create a server-sent events chat completion stream."""
    if content_parts is None:
        content_parts = ["Hello", " test"]

    events = []
    for part in content_parts:
        chunk = {
            "id": "chatcmpl-test123",
            "object": "chat.completion.chunk",
            "created": 1234567890,
            "model": model,
            "choices": [{"index": 0, "delta": {"content": part}, "finish_reason": None}],
        }
        events.append(f"data: {json.dumps(chunk)}\n\n")
    events.append("data: [DONE]\n\n")
    return "".join(events).encode()


class RecordingTransport(httpx.MockTransport):
    """
    Mock transport that records every request it serves.

    Args:
        handler: Function mapping an httpx.Request to an httpx.Response
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    def calls_to(self, path_suffix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path_suffix)]


def create_test_client(config, transport: httpx.AsyncBaseTransport) -> httpx.AsyncClient:
    """
    Factory function to create a test client for a server with a fake upstream.

    Args:
        config: Proxy configuration
        transport: Transport used by the server's upstream client

    Returns:
        An httpx.AsyncClient, usable as an async context manager.

    Usage:
        async with create_test_client(config, transport) as client:
            response = await client.get("/v1/models")
    """
    upstream = UpstreamClient(config.upstream_url, api_key=config.upstream_api_key, transport=transport)
    server = ProxyServer(config, upstream=upstream)
    app = server.create_asgi_app(debug=True)

    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


class BrokenStream(httpx.AsyncByteStream):
    """Upstream body that fails with a read error after its first chunks."""

    def __init__(self, chunks: Optional[List[bytes]] = None):
        self.chunks = chunks if chunks is not None else [b"data: first\n\n"]
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        raise httpx.ReadError("Connection reset by peer")

    async def aclose(self) -> None:
        self.closed = True
