# ============================================================================
# SCOPE: GLOBAL
# Description: Capture path for inbound webhook calls. Records the call,
#              looks up the forward target and hands off to the forwarder.
# ============================================================================
"""
Webhook Ingestion Pipeline.

The only contract towards the sender is "your call was accepted": storage
and forwarding outcomes never change the acknowledgement. Steps:

1. persist the captured request (failure: logged, ingestion continues)
2. look up the forward target (failure or empty: no forwarding)
3. schedule the forward without waiting for it
4. return the fixed acknowledgement
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.models.webhook import IngestAck
from hookrelay.repositories.captured_request_repository import CapturedRequestRepository
from hookrelay.repositories.webhook_repository import WebhookRepository
from hookrelay.services.webhook.forwarder import WebhookForwarder

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass
class InboundCall:
    """One inbound webhook call, fully read into memory."""

    webhook_id: str
    method: str
    headers: list[tuple[str, str]]
    body: bytes
    received_at: datetime

    def header_multimap(self) -> dict[str, list[str]]:
        """Headers grouped by lower-case name, every value kept in arrival order."""
        grouped: dict[str, list[str]] = {}
        for name, value in self.headers:
            grouped.setdefault(name.lower(), []).append(value)
        return grouped

    def body_text(self) -> str:
        # Stored as text; the forward uses the original bytes
        return self.body.decode("utf-8", errors="replace")


class IngestionPipeline:
    """
    Records inbound webhook calls and triggers forwarding.

    Each storage step runs in its own session so a failed insert cannot
    poison the forward-target lookup.
    """

    def __init__(self, session_factory: SessionFactory, forwarder: WebhookForwarder) -> None:
        """
        Args:
            session_factory: Returns an async context manager yielding a session
                that commits on exit (e.g. get_async_db_context)
            forwarder: Fire-and-forget forwarder
        """
        self._session_factory = session_factory
        self._forwarder = forwarder

    async def ingest(
        self,
        webhook_id: str,
        method: str,
        headers: Iterable[tuple[str, str]],
        body: bytes,
    ) -> IngestAck:
        """
        Capture one inbound call. Never raises for storage or forward problems.
        """
        call = InboundCall(
            webhook_id=webhook_id,
            method=method.upper(),
            headers=list(headers),
            body=body,
            received_at=datetime.now(UTC),
        )

        await self._persist(call)

        forward_url = await self._lookup_forward_url(call.webhook_id)
        if forward_url:
            self._forwarder.forward(call.webhook_id, call.method, call.headers, call.body, forward_url)
            logger.debug(f"Forward scheduled for webhook {call.webhook_id} -> {forward_url}")

        return IngestAck()

    async def _persist(self, call: InboundCall) -> bool:
        try:
            async with self._session_factory() as session:
                await CapturedRequestRepository(session).save(
                    webhook_id=call.webhook_id,
                    method=call.method,
                    headers=call.header_multimap(),
                    body=call.body_text(),
                    received_at=call.received_at,
                )
        except Exception as e:
            logger.error(f"Failed to save webhook request for {call.webhook_id}: {e}")
            return False

        logger.info(f"Captured {call.method} for webhook {call.webhook_id} ({len(call.body)} bytes)")
        return True

    async def _lookup_forward_url(self, webhook_id: str) -> str:
        try:
            async with self._session_factory() as session:
                return await WebhookRepository(session).get_forward_url(webhook_id)
        except Exception as e:
            logger.error(f"Failed to get forward URL for {webhook_id}: {e}")
            return ""
