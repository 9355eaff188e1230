"""
Ownership guard for webhook data.

Every read of captured requests, update, delete and clear goes through
here first. The check is a single existence query and is not held in a
transaction with the operation that follows; a webhook deleted in
between simply makes that operation report "not found".
"""

import logging

from hookrelay.core.exceptions import WebhookNotFoundError
from hookrelay.repositories.webhook_repository import WebhookRepository

logger = logging.getLogger(__name__)


class OwnershipGuard:
    def __init__(self, webhooks: WebhookRepository) -> None:
        self._webhooks = webhooks

    async def authorize(self, webhook_id: str, caller_id: str) -> bool:
        """True iff webhook `webhook_id` exists and is owned by `caller_id`."""
        return await self._webhooks.check_ownership(webhook_id, caller_id)

    async def require(self, webhook_id: str, caller_id: str) -> None:
        """
        Raise unless the caller owns the webhook.

        Raises:
            WebhookNotFoundError: same error for missing and foreign webhooks
        """
        if not await self.authorize(webhook_id, caller_id):
            logger.info(f"Ownership check failed for webhook {webhook_id} (caller {caller_id})")
            raise WebhookNotFoundError(webhook_id)
