"""Server module for llm_relay."""

from .app import ProxyServer
from .handlers import chat_completions_handler, models_handler, health_handler

__all__ = [
    "ProxyServer",
    "chat_completions_handler",
    "models_handler",
    "health_handler",
]
