"""
Tests for the ownership guard.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from hookrelay.core.exceptions import WebhookNotFoundError
from hookrelay.repositories.webhook_repository import WebhookRepository
from hookrelay.services.ownership_service import OwnershipGuard


@pytest.fixture
def mock_webhooks():
    mock = MagicMock(spec=WebhookRepository)
    mock.check_ownership = AsyncMock(return_value=True)
    return mock


@pytest.mark.unit
class TestOwnershipGuard:
    @pytest.mark.asyncio
    async def test_owner_is_authorized(self, mock_webhooks):
        guard = OwnershipGuard(mock_webhooks)

        assert await guard.authorize("wh1", "user-a") is True
        mock_webhooks.check_ownership.assert_awaited_once_with("wh1", "user-a")

    @pytest.mark.asyncio
    async def test_other_owner_or_missing_is_not_authorized(self, mock_webhooks):
        mock_webhooks.check_ownership.return_value = False
        guard = OwnershipGuard(mock_webhooks)

        assert await guard.authorize("wh1", "user-b") is False

    @pytest.mark.asyncio
    async def test_require_raises_not_found(self, mock_webhooks):
        mock_webhooks.check_ownership.return_value = False
        guard = OwnershipGuard(mock_webhooks)

        with pytest.raises(WebhookNotFoundError) as exc_info:
            await guard.require("wh1", "user-b")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Webhook not found"

    @pytest.mark.asyncio
    async def test_require_passes_for_owner(self, mock_webhooks):
        guard = OwnershipGuard(mock_webhooks)

        await guard.require("wh1", "user-a")

    @pytest.mark.asyncio
    async def test_storage_error_propagates(self, mock_webhooks):
        mock_webhooks.check_ownership.side_effect = RuntimeError("db down")
        guard = OwnershipGuard(mock_webhooks)

        with pytest.raises(RuntimeError):
            await guard.authorize("wh1", "user-a")
