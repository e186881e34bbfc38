from typing import AsyncIterator, Dict, Iterable, Tuple
import logging

import httpx

logger = logging.getLogger(__name__)

# Recomputed by the ASGI server, or no longer true once httpx has decoded the body
HOP_BY_HOP_HEADERS = frozenset({
    "content-encoding",
    "content-length",
    "transfer-encoding",
    "connection",
    "keep-alive",
})


def filter_response_headers(headers: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """
    Copy upstream response headers that are safe to relay.

    Framing headers are dropped, as are upstream CORS headers since the
    proxy applies its own policy.
    """
    out: Dict[str, str] = {}
    for name, value in headers:
        lname = name.lower()
        if lname in HOP_BY_HOP_HEADERS or lname.startswith("access-control-"):
            continue
        if lname == "set-cookie":
            continue
        out[lname] = value
    return out


async def relay_stream(response: httpx.Response, request_id: str = "-") -> AsyncIterator[bytes]:
    """
    Yield upstream body chunks as they arrive.

    The upstream response is closed when the stream ends, fails or the
    client goes away.
    """
    chunk_count = 0
    byte_count = 0
    try:
        async for chunk in response.aiter_bytes():
            chunk_count += 1
            byte_count += len(chunk)
            yield chunk
    except httpx.HTTPError as e:
        # Headers are already sent, all we can do is end the body early
        logger.error("Upstream stream for request %s broke off: %s", request_id, e)
    finally:
        await response.aclose()
        logger.debug(
            "Relayed %d chunks (%d bytes) for request %s",
            chunk_count,
            byte_count,
            request_id,
        )
