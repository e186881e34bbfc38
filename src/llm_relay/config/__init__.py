from .config import (
    ProxyConfig,
    ConfigurationError,
    load_config,
    DEFAULT_MODEL_BLACKLIST,
    DEFAULT_UPSTREAM_URL,
)

__all__ = [
    'ProxyConfig',
    'ConfigurationError',
    'load_config',
    'DEFAULT_MODEL_BLACKLIST',
    'DEFAULT_UPSTREAM_URL',
]
