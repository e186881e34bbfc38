"""LLM Relay - OpenAI API compatible reverse proxy for a single upstream provider."""

__version__ = "1.0.0"

import logging

# Library root logger - only add NullHandler, let users configure level
logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Core server and components
from .server import ProxyServer
from .catalog import ModelCatalog, ModelRecord, filter_models
from .config import ProxyConfig, ConfigurationError, load_config
from .cors import CorsPolicy
from .upstream import UpstreamClient

# Re-export error types
from .error import (
    ProxyError,
    AuthenticationError,
    InvalidRequestError,
    ForbiddenOriginError,
    NotFoundError,
    MethodNotAllowedError,
    UpstreamError,
    UpstreamUnavailable,
)

__all__ = [
    # Core components
    'ProxyServer',
    'ModelCatalog',
    'ModelRecord',
    'filter_models',
    'ProxyConfig',
    'ConfigurationError',
    'load_config',
    'CorsPolicy',
    'UpstreamClient',

    # Errors
    'ProxyError',
    'AuthenticationError',
    'InvalidRequestError',
    'ForbiddenOriginError',
    'NotFoundError',
    'MethodNotAllowedError',
    'UpstreamError',
    'UpstreamUnavailable',
]
