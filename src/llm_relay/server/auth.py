"""
Client authentication.
"""

import hmac
from typing import Optional

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer`` header, if any."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def validate_api_key(authorization: Optional[str], api_key: str) -> bool:
    """Check a bearer header against the configured key in constant time."""
    token = extract_bearer_token(authorization)
    if token is None:
        return False
    return hmac.compare_digest(token.encode(), api_key.encode())
