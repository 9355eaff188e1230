"""
FastAPI dependencies: caller identity, services and shared singletons.
"""

import logging
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config.settings import Settings, get_settings
from hookrelay.core.exceptions import AuthenticationError
from hookrelay.database.async_db import get_async_db, get_async_db_context
from hookrelay.services.webhook.forwarder import WebhookForwarder
from hookrelay.services.webhook.ingestion_service import IngestionPipeline
from hookrelay.services.webhook.webhook_service import WebhookService

logger = logging.getLogger(__name__)


def get_current_user_id(request: Request) -> str:
    """
    Caller id attached by AuthenticationMiddleware.

    Raises:
        AuthenticationError: route reached without a validated token
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise AuthenticationError("no authenticated caller on request")
    return user_id


def get_current_user_claims(request: Request) -> dict[str, Any]:
    """Claims of the validated token (empty when absent)."""
    return getattr(request.state, "user_claims", None) or {}


def get_forwarder(request: Request) -> WebhookForwarder:
    """Forwarder created by the application lifespan."""
    return request.app.state.forwarder


def get_ingestion_pipeline(
    forwarder: WebhookForwarder = Depends(get_forwarder),  # noqa: B008
) -> IngestionPipeline:
    """
    Ingestion pipeline.

    Opens its own sessions per step instead of the request-scoped one so a
    failed insert never reaches the forward lookup.
    """
    return IngestionPipeline(session_factory=get_async_db_context, forwarder=forwarder)


def get_webhook_service(
    db: AsyncSession = Depends(get_async_db),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> WebhookService:
    """Owner-scoped webhook management over the request session."""
    return WebhookService(db, settings=settings)
