"""
Webhook management endpoints (authenticated, owner-scoped).

ENDPOINTS:
  - POST   /webhooks          → create (also POST /create)
  - GET    /webhooks          → list caller's webhooks, newest first
  - GET    /webhooks/{id}     → read one
  - PUT    /webhooks/{id}     → update forward target and name
  - DELETE /webhooks/{id}     → delete, with its captured requests
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from hookrelay.models.webhook import (
    MessageResponse,
    WebhookCreate,
    WebhookCreatedResponse,
    WebhookResponse,
    WebhookUpdate,
)
from hookrelay.services.webhook.webhook_service import WebhookService

from ..dependencies import get_current_user_claims, get_current_user_id, get_webhook_service

router = APIRouter(tags=["webhooks"])


@router.post("/webhooks", response_model=WebhookCreatedResponse, status_code=status.HTTP_201_CREATED)
@router.post("/create", response_model=WebhookCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_webhook(
    payload: WebhookCreate,
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    claims: dict[str, Any] = Depends(get_current_user_claims),  # noqa: B008
    service: WebhookService = Depends(get_webhook_service),  # noqa: B008
) -> WebhookCreatedResponse:
    """Create a webhook owned by the caller and return its URLs."""
    email = claims.get("email") if isinstance(claims.get("email"), str) else None
    return await service.create(user_id, payload, email=email)


@router.get("/webhooks", response_model=list[WebhookResponse])
async def list_webhooks(
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    service: WebhookService = Depends(get_webhook_service),  # noqa: B008
) -> list[WebhookResponse]:
    webhooks = await service.list_for_owner(user_id)
    return [WebhookResponse.model_validate(webhook) for webhook in webhooks]


@router.get("/webhooks/{webhook_id}", response_model=WebhookResponse)
async def get_webhook(
    webhook_id: str,
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    service: WebhookService = Depends(get_webhook_service),  # noqa: B008
) -> WebhookResponse:
    webhook = await service.get(webhook_id, user_id)
    return WebhookResponse.model_validate(webhook)


@router.put("/webhooks/{webhook_id}", response_model=MessageResponse)
async def update_webhook(
    webhook_id: str,
    payload: WebhookUpdate,
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    service: WebhookService = Depends(get_webhook_service),  # noqa: B008
) -> MessageResponse:
    """Set the forward target (empty disables forwarding) and display name."""
    await service.update(webhook_id, user_id, payload)
    return MessageResponse(message="Webhook updated successfully")


@router.delete("/webhooks/{webhook_id}", response_model=MessageResponse)
async def delete_webhook(
    webhook_id: str,
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    service: WebhookService = Depends(get_webhook_service),  # noqa: B008
) -> MessageResponse:
    await service.delete(webhook_id, user_id)
    return MessageResponse(message="Webhook deleted successfully")
