from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Error type definitions
@dataclass(frozen=True)
class ProxyError(ABC):
    """Base class for all errors returned to clients."""
    message: str
    request_id: Optional[str] = None
    error_type: str = field(init=False)
    status_code: int = field(init=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for API responses."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.status_code,
                **self._extra_fields()
            }
        }

    def _extra_fields(self) -> Dict[str, Any]:
        """Override in subclasses to add additional fields."""
        return {}


@dataclass(frozen=True)
class AuthenticationError(ProxyError):
    """Missing or invalid client bearer token."""
    error_type: str = field(default="authentication_error", init=False)
    status_code: int = field(default=401, init=False)


@dataclass(frozen=True)
class InvalidRequestError(ProxyError):
    """Malformed client request body."""
    error_type: str = field(default="invalid_request_error", init=False)
    status_code: int = field(default=400, init=False)


@dataclass(frozen=True)
class ForbiddenOriginError(ProxyError):
    """Preflight from an origin outside the whitelist."""
    origin: Optional[str] = None
    error_type: str = field(default="forbidden_origin", init=False)
    status_code: int = field(default=403, init=False)

    def _extra_fields(self) -> Dict[str, Any]:
        return {"origin": self.origin} if self.origin else {}


@dataclass(frozen=True)
class NotFoundError(ProxyError):
    """No route for the requested path."""
    error_type: str = field(default="invalid_request_error", init=False)
    status_code: int = field(default=404, init=False)


@dataclass(frozen=True)
class MethodNotAllowedError(ProxyError):
    """Known path, unsupported method."""
    error_type: str = field(default="invalid_request_error", init=False)
    status_code: int = field(default=405, init=False)


@dataclass(frozen=True)
class UpstreamError(ProxyError):
    """The upstream provider could not be reached or answered badly."""
    error_type: str = field(default="server_error", init=False)
    status_code: int = field(default=500, init=False)


class UpstreamUnavailable(Exception):
    """
    Raised by the upstream client when a call fails.

    Covers transport errors, non-2xx status codes on the catalog endpoint and
    malformed catalog payloads. Handlers convert it into an UpstreamError.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
