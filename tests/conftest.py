"""
Shared fixtures for the llm_relay test suite.

This module provides a fake upstream provider, configured servers and HTTP
test clients to reduce duplication across tests.
"""

import pytest
import httpx
from typing import Any, Dict

from llm_relay.config import ProxyConfig

# Import factory functions from helpers module
# Use absolute import path for pytest
import sys
from pathlib import Path

# Add tests directory to path for imports
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from helpers import (
    TEST_API_KEY,
    UPSTREAM_URL,
    RecordingTransport,
    create_chat_completion,
    create_models_response,
    create_sse_body,
    create_test_client,
)


# =============================================================================
# Request Fixtures
# =============================================================================


@pytest.fixture
def basic_request() -> Dict[str, Any]:
    """Basic chat completion request as a dictionary."""
    return {
        "model": "deepseek-ai/DeepSeek-V3",
        "messages": [{"role": "user", "content": "Hello"}],
    }


@pytest.fixture
def streaming_request() -> Dict[str, Any]:
    """Streaming chat completion request as a dictionary."""
    return {
        "model": "deepseek-ai/DeepSeek-V3",
        "messages": [{"role": "user", "content": "Tell me a story"}],
        "stream": True,
    }


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {TEST_API_KEY}"}


# =============================================================================
# Fake Upstream Fixtures
# =============================================================================


def default_upstream_handler(request: httpx.Request) -> httpx.Response:
    """Answer /models and /chat/completions like the real provider would."""
    if request.url.path.endswith("/models"):
        return httpx.Response(200, json=create_models_response())

    if request.url.path.endswith("/chat/completions"):
        if request.headers.get("accept") == "text/event-stream":
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=create_sse_body(),
            )
        return httpx.Response(200, json=create_chat_completion())

    return httpx.Response(404, json={"detail": "Not Found"})


@pytest.fixture
def upstream_transport() -> RecordingTransport:
    """Recording mock transport backed by the default upstream handler."""
    return RecordingTransport(default_upstream_handler)


@pytest.fixture
def config() -> ProxyConfig:
    """Configuration pointing at the fake upstream with a wildcard CORS policy."""
    return ProxyConfig(api_key=TEST_API_KEY, upstream_url=UPSTREAM_URL)


# =============================================================================
# HTTP Test Client Fixtures
# =============================================================================


@pytest.fixture
async def client(config, upstream_transport):
    """
    HTTP client for testing against a server with the default fake upstream.
    """
    async with create_test_client(config, upstream_transport) as test_client:
        yield test_client
