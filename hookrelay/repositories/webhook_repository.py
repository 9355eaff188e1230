# ============================================================================
# SCOPE: GLOBAL
# Description: Repository for webhook configurations. Every owner-scoped
#              query filters on user_id so one owner never sees another's rows.
# ============================================================================
"""
Webhook Repository - Data persistence layer for the Webhook entity.

Usage:
    repository = WebhookRepository(db)
    forward_url = await repository.get_forward_url("aZ3kP0qL9xYt")
    webhooks = await repository.list_for_owner("user_123")
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.models.db.webhook import Webhook

logger = logging.getLogger(__name__)


class WebhookRepository:
    """
    Async repository for Webhook persistence.

    Single Responsibility: Data access layer for the webhooks table.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize repository with async database session.

        Args:
            db: SQLAlchemy async session
        """
        self._db = db

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def exists(self, webhook_id: str) -> bool:
        """Check whether any webhook uses this id, regardless of owner."""
        stmt = select(exists().where(Webhook.id == webhook_id))
        result = await self._db.execute(stmt)
        return bool(result.scalar())

    async def get_forward_url(self, webhook_id: str) -> str:
        """Get the forward target for a webhook.

        Args:
            webhook_id: Webhook identifier

        Returns:
            Forward URL, or "" when unset or the webhook does not exist
        """
        stmt = select(Webhook.forward_url).where(Webhook.id == webhook_id)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none() or ""

    async def check_ownership(self, webhook_id: str, owner_id: str) -> bool:
        """Check if a webhook with this id belongs to this owner.

        Returns:
            False for a missing webhook as well as for a different owner
        """
        stmt = select(exists().where(Webhook.id == webhook_id, Webhook.user_id == owner_id))
        result = await self._db.execute(stmt)
        return bool(result.scalar())

    async def get_for_owner(self, webhook_id: str, owner_id: str) -> Webhook | None:
        """Get a webhook by id, scoped to its owner."""
        stmt = select(Webhook).where(Webhook.id == webhook_id, Webhook.user_id == owner_id)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: str) -> list[Webhook]:
        """List an owner's webhooks, newest first."""
        stmt = select(Webhook).where(Webhook.user_id == owner_id).order_by(Webhook.created_at.desc(), Webhook.id)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def create_or_update(
        self,
        webhook_id: str,
        owner_id: str,
        forward_url: str,
        name: str,
        source_type: str,
    ) -> Webhook:
        """Upsert a webhook by id.

        An existing row keeps its owner; only forward_url, name and
        source_type are overwritten.

        Returns:
            The stored webhook
        """
        webhook = await self._db.get(Webhook, webhook_id)
        if webhook is None:
            webhook = Webhook(
                id=webhook_id,
                user_id=owner_id,
                forward_url=forward_url,
                name=name,
                source_type=source_type,
            )
            self._db.add(webhook)
        else:
            webhook.forward_url = forward_url
            webhook.name = name
            webhook.source_type = source_type

        await self._db.flush()
        await self._db.refresh(webhook)
        return webhook

    async def update(
        self,
        webhook_id: str,
        owner_id: str,
        forward_url: str | None = None,
        name: str | None = None,
    ) -> int:
        """Update forward target and/or name of an owned webhook.

        Fields left as None are not written.

        Returns:
            Rows affected (0 when missing or owned by someone else)
        """
        values: dict[str, str] = {}
        if forward_url is not None:
            values["forward_url"] = forward_url
        if name is not None:
            values["name"] = name
        if not values:
            raise ValueError("update needs at least one field")

        stmt = update(Webhook).where(Webhook.id == webhook_id, Webhook.user_id == owner_id).values(**values)
        result = await self._db.execute(stmt)
        return result.rowcount or 0

    async def delete(self, webhook_id: str, owner_id: str) -> int:
        """Delete an owned webhook. Captured requests cascade in the database.

        Returns:
            Rows affected (0 when missing or owned by someone else)
        """
        stmt = delete(Webhook).where(Webhook.id == webhook_id, Webhook.user_id == owner_id)
        result = await self._db.execute(stmt)
        deleted = result.rowcount or 0
        if deleted:
            logger.info(f"Deleted webhook {webhook_id}")
        return deleted
