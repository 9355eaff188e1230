"""
Middleware package for FastAPI application.

Contains authentication and request logging middleware.
"""

from hookrelay.api.middleware.auth import AuthenticationMiddleware
from hookrelay.api.middleware.logging_middleware import RequestLoggingMiddleware

__all__ = [
    "AuthenticationMiddleware",
    "RequestLoggingMiddleware",
]
