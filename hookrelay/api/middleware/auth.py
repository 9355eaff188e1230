"""
Authentication middleware for FastAPI application.

This module follows SRP by handling only authentication concerns.
Uses modern Starlette middleware patterns.
"""

import logging
import re
from collections.abc import Callable
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from hookrelay.core.exceptions import AuthenticationError
from hookrelay.services.token_service import TokenService

logger = logging.getLogger(__name__)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    HTTP middleware for request authentication.

    Validates the bearer token on every protected route and attaches the
    caller id to `request.state.user_id`. Public paths bypass authentication.
    """

    # Routes that don't require authentication (prefix match)
    PUBLIC_PATHS: tuple[str, ...] = (
        "/auth/login",
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
    )

    # Ingestion endpoint: public for every method. Note "/webhooks/..." is not matched.
    INGEST_PATH = re.compile(r"^/webhook/[^/]+/?$")

    def __init__(self, app: ASGIApp, token_service: TokenService | None = None) -> None:
        """
        Initialize authentication middleware.

        Args:
            app: ASGI application
            token_service: Optional token service instance (for testing)
        """
        super().__init__(app)
        self._token_service = token_service or TokenService()

    def _is_public_path(self, path: str) -> bool:
        """Check if the request path is public and doesn't require auth."""
        if self.INGEST_PATH.match(path):
            return True
        return any(path == public or path.startswith(public + "/") for public in self.PUBLIC_PATHS)

    def _extract_token(self, request: Request) -> str | None:
        """
        Extract Bearer token from Authorization header.

        Returns:
            Token string if valid Bearer scheme, None otherwise.
        """
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None

        return parts[1]

    @staticmethod
    def _unauthorized(message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "error": True,
                "message": message,
                "status_code": status.HTTP_401_UNAUTHORIZED,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> JSONResponse:
        """
        Process the request through authentication.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response from next handler or 401 error
        """
        # Preflight and public paths skip auth
        if request.method == "OPTIONS" or self._is_public_path(request.url.path):
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            logger.warning(f"Missing auth token for {request.url.path}")
            return self._unauthorized("Authentication required")

        try:
            claims = self._token_service.decode_token(token)
            user_id = self._token_service.caller_id_from_claims(claims)
        except AuthenticationError as e:
            # Never fatal, never retried
            logger.info(f"Rejected token for {request.url.path}: {e.reason}")
            return self._unauthorized(e.message)

        request.state.user_id = user_id
        request.state.user_claims = claims

        return await call_next(request)
