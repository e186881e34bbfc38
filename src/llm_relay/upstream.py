"""
HTTP client for the upstream provider.

All upstream traffic goes through one shared ``httpx.AsyncClient`` whose
requests look like they originate from the provider's own web UI.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .error import UpstreamUnavailable

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36"
)


def browser_origin(upstream_url: str) -> str:
    """Site origin matching an API base URL, e.g. https://deepinfra.com."""
    host = httpx.URL(upstream_url).host
    if host.startswith("api."):
        host = host[len("api."):]
    return f"https://{host}"


class UpstreamClient:
    """
    Thin wrapper around httpx for the two upstream endpoints we proxy.

    Args:
        base_url: Upstream API base, e.g. https://api.deepinfra.com/v1/openai
        api_key: Optional bearer token sent upstream
        timeout: Seconds before giving up, None waits indefinitely
        transport: Optional httpx transport, used by tests
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.origin = browser_origin(self.base_url)
        self.client = httpx.AsyncClient(
            base_url=self.base_url + "/",
            timeout=timeout,
            transport=transport,
        )

    def build_headers(self, stream: bool = False) -> Dict[str, str]:
        """Browser-like request headers, negotiating SSE when streaming."""
        headers = {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "text/event-stream" if stream else "application/json",
            "Content-Type": "application/json",
            "Origin": self.origin,
            "Referer": self.origin + "/",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch_models(self) -> List[Dict[str, Any]]:
        """
        Fetch the raw model list.

        Returns:
            The ``data`` array of the upstream response

        Raises:
            UpstreamUnavailable: On transport errors, non-2xx status or a
                payload without a ``data`` list
        """
        try:
            response = await self.client.get("models", headers=self.build_headers())
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Upstream request failed: {e}") from e

        if not response.is_success:
            raise UpstreamUnavailable(
                f"Upstream error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Upstream returned invalid JSON: {e}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise UpstreamUnavailable("Upstream response is missing the 'data' array")
        return data

    async def open_chat_completion(self, body: bytes, stream: bool) -> httpx.Response:
        """
        Send a chat completion request and return the unread response.

        The caller owns the returned response and must close it.

        Raises:
            UpstreamUnavailable: If the request could not be sent
        """
        request = self.client.build_request(
            "POST",
            "chat/completions",
            headers=self.build_headers(stream=stream),
            content=body,
        )
        try:
            return await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(str(e) or type(e).__name__) from e

    async def aclose(self) -> None:
        await self.client.aclose()
