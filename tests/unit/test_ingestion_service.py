"""
Tests for the ingestion pipeline with mocked storage and forwarder.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from hookrelay.models.webhook import IngestAck
from hookrelay.services.webhook.forwarder import WebhookForwarder
from hookrelay.services.webhook.ingestion_service import InboundCall, IngestionPipeline

MODULE = "hookrelay.services.webhook.ingestion_service"


@asynccontextmanager
async def fake_session():
    yield MagicMock()


@asynccontextmanager
async def broken_session():
    raise OperationalError("SELECT 1", {}, Exception("database is down"))
    yield  # pragma: no cover


@pytest.fixture
def mock_forwarder():
    return MagicMock(spec=WebhookForwarder)


@pytest.mark.unit
class TestInboundCall:
    def test_header_multimap_groups_by_lower_case_name(self):
        call = InboundCall(
            webhook_id="wh1",
            method="POST",
            headers=[("X-Multi", "a"), ("x-multi", "b"), ("Content-Type", "text/plain")],
            body=b"",
            received_at=MagicMock(),
        )

        assert call.header_multimap() == {"x-multi": ["a", "b"], "content-type": ["text/plain"]}

    def test_body_text_replaces_invalid_utf8(self):
        call = InboundCall("wh1", "POST", [], b"ok\xff", MagicMock())

        assert call.body_text() == "ok\ufffd"


@pytest.mark.unit
class TestIngestionPipeline:
    @pytest.mark.asyncio
    async def test_persists_and_forwards(self, mock_forwarder):
        with (
            patch(f"{MODULE}.CapturedRequestRepository") as mock_requests,
            patch(f"{MODULE}.WebhookRepository") as mock_webhooks,
        ):
            mock_requests.return_value.save = AsyncMock()
            mock_webhooks.return_value.get_forward_url = AsyncMock(return_value="http://target.test/hook")
            pipeline = IngestionPipeline(fake_session, mock_forwarder)

            ack = await pipeline.ingest("wh1", "post", [("X-Test", "1")], b'{"a":1}')

        assert ack == IngestAck()
        assert ack.status == "Webhook received"
        saved = mock_requests.return_value.save.await_args.kwargs
        assert saved["webhook_id"] == "wh1"
        assert saved["method"] == "POST"
        assert saved["headers"] == {"x-test": ["1"]}
        assert saved["body"] == '{"a":1}'
        mock_forwarder.forward.assert_called_once_with(
            "wh1", "POST", [("X-Test", "1")], b'{"a":1}', "http://target.test/hook"
        )

    @pytest.mark.asyncio
    async def test_no_forward_without_target(self, mock_forwarder):
        with (
            patch(f"{MODULE}.CapturedRequestRepository") as mock_requests,
            patch(f"{MODULE}.WebhookRepository") as mock_webhooks,
        ):
            mock_requests.return_value.save = AsyncMock()
            mock_webhooks.return_value.get_forward_url = AsyncMock(return_value="")
            pipeline = IngestionPipeline(fake_session, mock_forwarder)

            ack = await pipeline.ingest("wh1", "GET", [], b"")

        assert ack.status == "Webhook received"
        mock_forwarder.forward.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_failure_still_acknowledged(self, mock_forwarder, caplog):
        caplog.set_level(logging.INFO)
        pipeline = IngestionPipeline(broken_session, mock_forwarder)

        ack = await pipeline.ingest("wh1", "POST", [], b"payload")

        assert ack.status == "Webhook received"
        assert "Failed to save webhook request for wh1" in caplog.text
        assert "Failed to get forward URL for wh1" in caplog.text
        mock_forwarder.forward.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_failure_does_not_block_forward(self, mock_forwarder):
        with (
            patch(f"{MODULE}.CapturedRequestRepository") as mock_requests,
            patch(f"{MODULE}.WebhookRepository") as mock_webhooks,
        ):
            mock_requests.return_value.save = AsyncMock(side_effect=RuntimeError("insert failed"))
            mock_webhooks.return_value.get_forward_url = AsyncMock(return_value="http://target.test/hook")
            pipeline = IngestionPipeline(fake_session, mock_forwarder)

            ack = await pipeline.ingest("wh1", "POST", [], b"x")

        assert ack.status == "Webhook received"
        mock_forwarder.forward.assert_called_once()

    @pytest.mark.asyncio
    async def test_hanging_target_does_not_delay_ack(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(30)
            return httpx.Response(200)

        forwarder = WebhookForwarder(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)), timeout=30)
        with (
            patch(f"{MODULE}.CapturedRequestRepository") as mock_requests,
            patch(f"{MODULE}.WebhookRepository") as mock_webhooks,
        ):
            mock_requests.return_value.save = AsyncMock()
            mock_webhooks.return_value.get_forward_url = AsyncMock(return_value="http://target.test/hook")
            pipeline = IngestionPipeline(fake_session, forwarder)

            ack = await asyncio.wait_for(pipeline.ingest("wh1", "POST", [], b"x"), timeout=1.0)

        assert ack.status == "Webhook received"
        assert forwarder.in_flight == 1
        await forwarder.shutdown()
