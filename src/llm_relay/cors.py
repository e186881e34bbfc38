"""
CORS policy.

Two modes are supported. With no whitelist (or one containing ``*``) every
origin is allowed and responses carry ``Access-Control-Allow-Origin: *``.
With a whitelist, matching origins are echoed back together with
``Vary: Origin``; any other origin gets no CORS headers at all and the
browser blocks the response.
"""

from typing import Dict, Iterable, Optional

ALLOW_METHODS = "GET, POST, OPTIONS"
DEFAULT_ALLOW_HEADERS = "Authorization, Content-Type"
MAX_AGE = "86400"


class CorsPolicy:
    def __init__(self, allowed_origins: Optional[Iterable[str]] = None):
        origins = [origin.strip().rstrip("/") for origin in (allowed_origins or []) if origin.strip()]
        self.wildcard = not origins or "*" in origins
        self.allowed_origins = frozenset(origins)

    def is_allowed(self, origin: Optional[str]) -> bool:
        if self.wildcard:
            return True
        return bool(origin) and origin.rstrip("/") in self.allowed_origins

    def headers_for(self, origin: Optional[str], request_headers: Optional[str] = None) -> Dict[str, str]:
        """
        CORS headers to attach for a request from ``origin``.

        Returns an empty dict when the origin is not allowed.
        """
        if self.wildcard:
            return {
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": ALLOW_METHODS,
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Max-Age": MAX_AGE,
            }
        if not self.is_allowed(origin):
            return {}
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": request_headers or DEFAULT_ALLOW_HEADERS,
            "Access-Control-Max-Age": MAX_AGE,
            "Vary": "Origin",
        }
