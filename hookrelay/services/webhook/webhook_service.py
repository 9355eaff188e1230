"""
Webhook management: create, list, read, update, delete, inspect and clear.

Every operation on an existing webhook passes the ownership guard before
touching data, and every storage failure becomes a PersistenceError.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config.settings import Settings, get_settings
from hookrelay.core.exceptions import ClientInputError, PersistenceError, WebhookNotFoundError
from hookrelay.models.db.webhook import CapturedRequest, Webhook
from hookrelay.models.webhook import WebhookCreate, WebhookCreatedResponse, WebhookUpdate
from hookrelay.repositories.captured_request_repository import CapturedRequestRepository
from hookrelay.repositories.user_repository import UserRepository
from hookrelay.repositories.webhook_repository import WebhookRepository
from hookrelay.services.id_generator import generate_id
from hookrelay.services.ownership_service import OwnershipGuard

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WebhookService:
    """Owner-scoped webhook operations over one request-scoped session."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        id_factory: Callable[[int], str] = generate_id,
    ) -> None:
        self._db = db
        self._settings = settings or get_settings()
        self._id_factory = id_factory
        self._webhooks = WebhookRepository(db)
        self._requests = CapturedRequestRepository(db)
        self._users = UserRepository(db)
        self._guard = OwnershipGuard(self._webhooks)

    async def _run(self, operation: str, coro: Awaitable[T]) -> T:
        try:
            return await coro
        except SQLAlchemyError as e:
            logger.error(f"Database error during {operation}: {e}")
            raise PersistenceError(operation, e) from e

    def webhook_url(self, webhook_id: str) -> str:
        return f"{self._settings.public_base_url}/webhook/{webhook_id}"

    def inspect_url(self, webhook_id: str) -> str:
        return f"{self._settings.public_base_url}/inspect/{webhook_id}"

    # =========================================================================
    # Create / list / read
    # =========================================================================

    async def create(self, owner_id: str, payload: WebhookCreate, email: str | None = None) -> WebhookCreatedResponse:
        """
        Create a webhook owned by the caller, with forwarding disabled.

        Raises:
            ClientInputError: name or source_type missing
            PersistenceError: storage failure, or no free id after
                WEBHOOK_ID_MAX_ATTEMPTS tries
        """
        name = payload.name.strip()
        source_type = payload.source_type.strip()
        if not name:
            raise ClientInputError("name is required", field="name")
        if not source_type:
            raise ClientInputError("source_type is required", field="source_type")

        return await self._run("create_webhook", self._create(owner_id, email, name, source_type))

    async def _create(self, owner_id: str, email: str | None, name: str, source_type: str) -> WebhookCreatedResponse:
        await self._users.upsert_user(owner_id, email)

        webhook_id = await self._allocate_id()
        await self._webhooks.create_or_update(webhook_id, owner_id, "", name, source_type)
        logger.info(f"Webhook {webhook_id} created for owner {owner_id} ({source_type})")

        return WebhookCreatedResponse(
            id=webhook_id,
            webhook_url=self.webhook_url(webhook_id),
            inspect_url=self.inspect_url(webhook_id),
        )

    async def _allocate_id(self) -> str:
        """Generate ids until one is free; create_or_update would otherwise overwrite."""
        attempts = self._settings.WEBHOOK_ID_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            candidate = self._id_factory(self._settings.WEBHOOK_ID_LENGTH)
            if not await self._webhooks.exists(candidate):
                return candidate
            logger.warning(f"Generated webhook id already taken (attempt {attempt}/{attempts})")
        raise PersistenceError("allocate_webhook_id")

    async def list_for_owner(self, owner_id: str) -> list[Webhook]:
        return await self._run("list_webhooks", self._webhooks.list_for_owner(owner_id))

    async def get(self, webhook_id: str, owner_id: str) -> Webhook:
        webhook = await self._run("get_webhook", self._webhooks.get_for_owner(webhook_id, owner_id))
        if webhook is None:
            raise WebhookNotFoundError(webhook_id)
        return webhook

    # =========================================================================
    # Update / delete
    # =========================================================================

    async def update(self, webhook_id: str, owner_id: str, payload: WebhookUpdate) -> None:
        """
        Write only the fields present in the payload.

        Raises:
            ClientInputError: no field given, or a non-http(s) forward_url
            WebhookNotFoundError: missing or owned by someone else
        """
        if payload.forward_url is None and payload.name is None:
            raise ClientInputError("No fields to update")

        await self._run("check_ownership", self._guard.require(webhook_id, owner_id))

        forward_url = payload.forward_url.strip() if payload.forward_url is not None else None
        if forward_url and not forward_url.lower().startswith(("http://", "https://")):
            raise ClientInputError("forward_url must be an http(s) URL", field="forward_url")
        name = payload.name.strip() if payload.name is not None else None

        updated = await self._run(
            "update_webhook",
            self._webhooks.update(webhook_id, owner_id, forward_url=forward_url, name=name),
        )
        if not updated:
            # Deleted between the ownership check and the update
            raise WebhookNotFoundError(webhook_id)
        if forward_url is not None:
            logger.info(f"Webhook {webhook_id} updated (forwarding {'on' if forward_url else 'off'})")
        else:
            logger.info(f"Webhook {webhook_id} renamed")

    async def delete(self, webhook_id: str, owner_id: str) -> None:
        await self._run("check_ownership", self._guard.require(webhook_id, owner_id))

        deleted = await self._run("delete_webhook", self._webhooks.delete(webhook_id, owner_id))
        if not deleted:
            raise WebhookNotFoundError(webhook_id)

    # =========================================================================
    # Captured requests
    # =========================================================================

    async def inspect(self, webhook_id: str, owner_id: str, limit: int) -> list[CapturedRequest]:
        await self._run("check_ownership", self._guard.require(webhook_id, owner_id))
        return await self._run("list_requests", self._requests.list_for_webhook(webhook_id, limit))

    async def clear(self, webhook_id: str, owner_id: str) -> int:
        await self._run("check_ownership", self._guard.require(webhook_id, owner_id))

        cleared = await self._run("clear_requests", self._requests.clear(webhook_id))
        logger.info(f"Cleared {cleared} captured requests for webhook {webhook_id}")
        return cleared
