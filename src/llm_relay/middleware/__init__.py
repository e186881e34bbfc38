from .cors import CorsMiddleware
from .logging import RequestLoggingMiddleware, generate_request_id

__all__ = [
    'CorsMiddleware',
    'RequestLoggingMiddleware',
    'generate_request_id',
]
