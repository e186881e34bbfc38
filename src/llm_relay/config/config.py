"""
Configuration model and loading.

Configuration is a single Pydantic model assembled from three layers, lowest
precedence first: built-in defaults, an optional YAML file, and environment
variables. Values in the YAML file may reference environment variables with
the ``${VAR}`` syntax.
"""

import os
import re
import yaml
from typing import Any, Dict, List, Mapping, Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_UPSTREAM_URL = "https://api.deepinfra.com/v1/openai"
DEFAULT_API_KEY = "default-key-change-me"

# Non-chat model families hidden from /v1/models
DEFAULT_MODEL_BLACKLIST = [
    "whisper",
    "embed",
    "tts",
    "flux",
    "stable-diffusion",
    "sdxl",
    "rerank",
    "bge",
]

CONFIG_FILE_ENV = "LLM_RELAY_CONFIG"


class ConfigurationError(Exception):
    """Configuration validation or loading error."""
    pass


ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def resolve_env_references(value: Any, environ: Mapping[str, str]) -> Any:
    """
    Replace ${VAR} references in every string of a loaded YAML tree.

    Raises:
        ConfigurationError: If a referenced variable is not set
    """
    if isinstance(value, dict):
        return {key: resolve_env_references(item, environ) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_env_references(item, environ) for item in value]
    if not isinstance(value, str):
        return value

    def substitute(match):
        var_name = match.group(1)
        if var_name not in environ:
            raise ConfigurationError(f"Environment variable not found: {var_name}")
        return environ[var_name]

    return ENV_REFERENCE.sub(substitute, value)


def _split_csv(v):
    if isinstance(v, str):
        return [item.strip() for item in v.split(',') if item.strip()]
    return v


class ProxyConfig(BaseModel):
    """Runtime configuration for the relay."""
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=12506, gt=0, lt=65536, description="Port to listen on")
    api_key: str = Field(default=DEFAULT_API_KEY, description="Bearer token clients must present")

    upstream_url: str = Field(default=DEFAULT_UPSTREAM_URL, description="Base URL of the upstream provider")
    upstream_api_key: Optional[str] = Field(default=None, description="Optional key sent to the upstream")
    upstream_timeout: Optional[float] = Field(default=None, gt=0, description="Upstream timeout in seconds, None for no timeout")

    allowed_origins: List[str] = Field(default_factory=list, description="CORS whitelist, empty or '*' allows all")

    model_cache_ttl: float = Field(default=60.0, ge=0, description="Seconds a fetched model list stays fresh")
    model_filter: bool = Field(default=True, description="Whether to apply the model blacklist")
    model_blacklist: List[str] = Field(default_factory=lambda: list(DEFAULT_MODEL_BLACKLIST))

    log_level: str = Field(default="INFO", description="Root log level for the server entry point")

    @field_validator('api_key')
    @classmethod
    def validate_api_key(cls, v):
        if not v or v.strip() == "":
            raise ValueError("api_key cannot be empty")
        return v

    @field_validator('upstream_api_key')
    @classmethod
    def empty_upstream_key_is_none(cls, v):
        return v or None

    @field_validator('upstream_url')
    @classmethod
    def validate_upstream_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"upstream_url must be an http(s) URL: {v}")
        return v.rstrip('/')

    @field_validator('allowed_origins', 'model_blacklist', mode='before')
    @classmethod
    def parse_comma_separated(cls, v):
        return _split_csv(v)

    @field_validator('model_blacklist')
    @classmethod
    def normalize_keywords(cls, v):
        return [keyword.lower() for keyword in v if keyword]

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def uses_default_api_key(self) -> bool:
        return self.api_key == DEFAULT_API_KEY


# Environment variable -> config field
ENV_FIELDS: Dict[str, str] = {
    "HOST": "host",
    "PORT": "port",
    "API_KEY": "api_key",
    "UPSTREAM_URL": "upstream_url",
    "UPSTREAM_API_KEY": "upstream_api_key",
    "UPSTREAM_TIMEOUT": "upstream_timeout",
    "ALLOWED_ORIGINS": "allowed_origins",
    "MODEL_CACHE_TTL": "model_cache_ttl",
    "MODEL_FILTER": "model_filter",
    "MODEL_BLACKLIST": "model_blacklist",
    "LOG_LEVEL": "log_level",
}


def _load_yaml(config_file: str) -> Dict[str, Any]:
    try:
        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_file}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax: {e}")

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration file must contain a mapping")
    return raw_config


def load_config(
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProxyConfig:
    """
    Build the configuration from defaults, a YAML file and the environment.

    Args:
        config_file: Path to a YAML file. Falls back to $LLM_RELAY_CONFIG.
        environ: Environment mapping, defaults to os.environ.

    Raises:
        ConfigurationError: If the file cannot be read or validation fails
    """
    if environ is None:
        environ = os.environ

    config_file = config_file or environ.get(CONFIG_FILE_ENV)
    values: Dict[str, Any] = _load_yaml(config_file) if config_file else {}
    values = resolve_env_references(values, environ)

    for env_name, field_name in ENV_FIELDS.items():
        if env_name in environ:
            values[field_name] = environ[env_name]

    try:
        return ProxyConfig(**values)
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {e}")
