# ============================================================================
# SCOPE: GLOBAL
# Description: Fire-and-forget relay of captured webhook calls to their
#              configured forward target.
# ============================================================================
"""
Webhook Forwarder.

Each forwarded ingestion spawns one independent asyncio task that replays
the original method, headers and body to the target URL. The task is not
tied to the inbound request: it outlives the response, has no result
channel back to the handler, and is attempted exactly once.

Failures (network error, timeout, non-2xx) produce a single log line and
nothing else. There is no queue and no concurrency cap; in-flight
forwards still pending at process shutdown may be dropped.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Any

import httpx

from hookrelay.core.exceptions import ForwardError

logger = logging.getLogger(__name__)

# Managed by the HTTP client for the outbound connection
_HOP_BY_HOP_HEADERS = frozenset(
    {
        "host",
        "content-length",
        "transfer-encoding",
        "connection",
        "keep-alive",
    }
)

DEFAULT_FORWARD_TIMEOUT = 10.0


class WebhookForwarder:
    """
    Replays captured requests to forward targets in background tasks.

    Usage:
        forwarder = WebhookForwarder(timeout=10.0)
        forwarder.forward(webhook_id, "POST", headers, body, "https://example.com/hook")
        ...
        await forwarder.shutdown()
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_FORWARD_TIMEOUT,
    ) -> None:
        """
        Initialize the forwarder.

        Args:
            client: Shared HTTP client (one is created when omitted)
            timeout: Bound on each outbound call, in seconds
        """
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=False)
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def in_flight(self) -> int:
        """Number of forwards not yet finished."""
        return len(self._tasks)

    def forward(
        self,
        webhook_id: str,
        method: str,
        headers: Iterable[tuple[str, str]],
        body: bytes,
        target_url: str,
    ) -> None:
        """
        Schedule one forward attempt and return immediately.

        Must be called from a running event loop.
        """
        outbound_headers = [(name, value) for name, value in headers if name.lower() not in _HOP_BY_HOP_HEADERS]

        task = asyncio.create_task(
            self._send(webhook_id, method, outbound_headers, body, target_url),
            name=f"forward:{webhook_id}",
        )
        # Strong reference until done, otherwise the loop may collect it
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(
        self,
        webhook_id: str,
        method: str,
        headers: list[tuple[str, str]],
        body: bytes,
        target_url: str,
    ) -> None:
        start_time = time.perf_counter()
        try:
            response = await self._deliver(webhook_id, method, headers, body, target_url)
        except ForwardError as e:
            logger.warning(f"Failed to forward webhook {e.webhook_id} to {e.target_url}: {e.reason}")
            return
        except asyncio.CancelledError:
            logger.warning(f"Forward of webhook {webhook_id} to {target_url} cancelled")
            raise
        except Exception as e:
            logger.error(f"Unexpected error forwarding webhook {webhook_id} to {target_url}: {e}", exc_info=True)
            return

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Webhook {webhook_id} forwarded to {target_url}, status: {response.status_code} "
            f"({elapsed_ms:.0f}ms)"
        )

    async def _deliver(
        self,
        webhook_id: str,
        method: str,
        headers: list[tuple[str, str]],
        body: bytes,
        target_url: str,
    ) -> httpx.Response:
        """Send the outbound call, translating every failure into ForwardError."""
        try:
            # wait_for bounds the whole exchange, httpx only bounds each phase
            response = await asyncio.wait_for(
                self._client.request(method, target_url, content=body, headers=headers, timeout=self._timeout),
                timeout=self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise ForwardError(webhook_id, target_url, f"timed out after {self._timeout}s") from e
        except httpx.InvalidURL as e:
            raise ForwardError(webhook_id, target_url, f"invalid target URL: {e}") from e
        except httpx.HTTPError as e:
            raise ForwardError(webhook_id, target_url, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise ForwardError(webhook_id, target_url, f"target answered {response.status_code}")
        return response

    async def drain(self, timeout: float) -> int:
        """
        Wait up to `timeout` seconds for in-flight forwards.

        Returns:
            Number of forwards still running afterwards
        """
        pending = set(self._tasks)
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=timeout)
            return len(still_pending)
        return 0

    async def shutdown(self, grace_seconds: float = 0.0) -> None:
        """
        Stop forwarding: wait briefly, cancel the rest, close the client.
        """
        remaining = await self.drain(grace_seconds) if grace_seconds > 0 else len(self._tasks)
        if remaining:
            logger.warning(f"Dropping {remaining} in-flight forward(s) at shutdown")
            for task in list(self._tasks):
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._owns_client:
            await self._client.aclose()
