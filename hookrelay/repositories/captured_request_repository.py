"""
Repository for captured inbound requests.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.models.db.webhook import CapturedRequest


class CapturedRequestRepository:
    """Async repository for the requests table. Rows are insert-only."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def save(
        self,
        webhook_id: str,
        method: str,
        headers: dict[str, list[str]],
        body: str,
        received_at: datetime,
    ) -> CapturedRequest:
        """Insert one captured request.

        Raises:
            sqlalchemy.exc.IntegrityError: the webhook does not exist
        """
        captured = CapturedRequest(
            webhook_id=webhook_id,
            method=method,
            headers=headers,
            body=body,
            received_at=received_at,
        )
        self._db.add(captured)
        await self._db.flush()
        return captured

    async def list_for_webhook(self, webhook_id: str, limit: int) -> list[CapturedRequest]:
        """Most recent captured requests first, at most `limit`."""
        stmt = (
            select(CapturedRequest)
            .where(CapturedRequest.webhook_id == webhook_id)
            .order_by(CapturedRequest.received_at.desc(), CapturedRequest.request_id.desc())
            .limit(limit)
        )
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def clear(self, webhook_id: str) -> int:
        """Delete every captured request of a webhook; the webhook row stays.

        Callers must check ownership first.

        Returns:
            Number of deleted rows
        """
        stmt = delete(CapturedRequest).where(CapturedRequest.webhook_id == webhook_id)
        result = await self._db.execute(stmt)
        return result.rowcount or 0
