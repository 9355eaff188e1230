"""
Inspection of captured requests (authenticated, owner-scoped).

ENDPOINTS:
  - GET    /inspect/{id}?limit=N → captured requests, newest first
  - DELETE /inspect/{id}         → clear captured requests, keep the webhook
"""

from fastapi import APIRouter, Depends, Query

from hookrelay.config.settings import Settings, get_settings
from hookrelay.core.exceptions import ClientInputError
from hookrelay.models.webhook import CapturedRequestResponse, MessageResponse
from hookrelay.services.webhook.webhook_service import WebhookService

from ..dependencies import get_current_user_id, get_webhook_service

router = APIRouter(tags=["inspect"])


@router.get("/inspect/{webhook_id}", response_model=list[CapturedRequestResponse])
async def inspect_webhook(
    webhook_id: str,
    limit: int | None = Query(None, description="Maximum number of requests to return"),  # noqa: B008
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    service: WebhookService = Depends(get_webhook_service),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> list[CapturedRequestResponse]:
    if limit is None:
        limit = settings.INSPECT_DEFAULT_LIMIT
    if limit < 1 or limit > settings.INSPECT_MAX_LIMIT:
        raise ClientInputError(f"limit must be between 1 and {settings.INSPECT_MAX_LIMIT}", field="limit")

    captured = await service.inspect(webhook_id, user_id, limit)
    return [CapturedRequestResponse.model_validate(item) for item in captured]


@router.delete("/inspect/{webhook_id}", response_model=MessageResponse)
async def clear_webhook_requests(
    webhook_id: str,
    user_id: str = Depends(get_current_user_id),  # noqa: B008
    service: WebhookService = Depends(get_webhook_service),  # noqa: B008
) -> MessageResponse:
    cleared = await service.clear(webhook_id, user_id)
    return MessageResponse(message=f"Cleared {cleared} requests")
