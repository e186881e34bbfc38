"""Core server abstraction for llm_relay."""

import contextlib
import logging
from typing import Callable, List, Optional

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.routing import Route

from ..catalog import ModelCatalog
from ..config import ProxyConfig
from ..cors import CorsPolicy
from ..middleware import CorsMiddleware, RequestLoggingMiddleware
from ..upstream import UpstreamClient
from .handlers import (
    chat_completions_handler,
    health_handler,
    http_exception_handler,
    models_handler,
)

logger = logging.getLogger(__name__)


class ProxyServer:
    """
    Core server class that provides the proxied OpenAI-compatible endpoints.

    Owns the upstream client, the model catalog and the CORS policy, and wires
    them into a Starlette application. Collaborators can be passed in to
    replace the defaults built from the configuration.
    """

    def __init__(
        self,
        config: ProxyConfig,
        upstream: Optional[UpstreamClient] = None,
        catalog: Optional[ModelCatalog] = None,
        cors_policy: Optional[CorsPolicy] = None,
    ):
        """
        Initialize the server.

        Args:
            config: Validated proxy configuration
            upstream: Upstream client, built from config if None
            catalog: Model catalog, built around ``upstream`` if None
            cors_policy: CORS policy, built from ``config.allowed_origins`` if None
        """
        self.config = config
        self.upstream = upstream or UpstreamClient(
            config.upstream_url,
            api_key=config.upstream_api_key,
            timeout=config.upstream_timeout,
        )
        self.catalog = catalog or ModelCatalog(
            self.upstream.fetch_models,
            ttl=config.model_cache_ttl,
            blacklist=config.model_blacklist,
            filter_enabled=config.model_filter,
        )
        self.cors_policy = cors_policy or CorsPolicy(config.allowed_origins)

    def create_asgi_app(self, debug: bool = False, middleware: Optional[List[Middleware]] = None) -> Starlette:
        """
        Create and configure the ASGI application.

        Args:
            debug: Enable debug mode
            middleware: Optional extra Starlette middleware, run inside the
                logging and CORS layers

        Returns:
            Configured Starlette application
        """
        models = self._create_models_handler()
        chat_completions = self._create_chat_completions_handler()

        routes = [
            Route('/health', health_handler, methods=['GET']),
            Route('/v1/health', health_handler, methods=['GET']),
            Route('/models', models, methods=['GET']),
            Route('/v1/models', models, methods=['GET']),
            Route('/chat/completions', chat_completions, methods=['POST']),
            Route('/v1/chat/completions', chat_completions, methods=['POST']),
        ]

        stack = [
            Middleware(RequestLoggingMiddleware),
            Middleware(CorsMiddleware, policy=self.cors_policy),
            *(middleware or []),
        ]

        return Starlette(
            debug=debug,
            routes=routes,
            middleware=stack,
            exception_handlers={HTTPException: http_exception_handler},
            lifespan=self._lifespan,
        )

    @contextlib.asynccontextmanager
    async def _lifespan(self, app: Starlette):
        if self.config.uses_default_api_key:
            logger.warning("API_KEY is not set, using the built-in default key")
        logger.info("Proxying to %s", self.config.upstream_url)
        logger.info("Endpoints: /v1/models, /v1/chat/completions, /v1/health")
        try:
            yield
        finally:
            await self.upstream.aclose()

    def _create_models_handler(self) -> Callable:
        async def handler(request):
            return await models_handler(request, self.catalog)
        return handler

    def _create_chat_completions_handler(self) -> Callable:
        """Create the chat completions handler bound to this server's upstream."""
        async def handler(request):
            return await chat_completions_handler(request, self.upstream, self.config.api_key)
        return handler
