#!/usr/bin/env python3
"""
Entry point for running the relay.

    llm-relay
    uvicorn --factory llm_relay.main:create_app

Configuration comes from the environment (PORT, API_KEY, ALLOWED_ORIGINS, ...)
and optionally a YAML file named by $LLM_RELAY_CONFIG.
"""

import logging
import sys
from typing import Optional

from starlette.applications import Starlette

from llm_relay import ProxyServer
from llm_relay.config import ConfigurationError, ProxyConfig, load_config


def configure_logging(level: str = "INFO") -> None:
    # Configure logging for stdout output
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    # Configure llm_relay library logging - this affects all llm_relay.* loggers
    logging.getLogger('llm_relay').setLevel(level)


def create_app(config: Optional[ProxyConfig] = None) -> Starlette:
    """Build the ASGI app from the given or environment configuration."""
    if config is None:
        config = load_config()
    server = ProxyServer(config)
    return server.create_asgi_app()


def main() -> None:
    """Run the relay server."""
    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.log_level)

    app = create_app(config)

    import uvicorn
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
