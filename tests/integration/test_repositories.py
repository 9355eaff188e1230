"""
Repository tests against the SQLite test database.
"""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from hookrelay.database.async_db import AsyncSessionLocal
from hookrelay.models.db import CapturedRequest, UserDB, Webhook
from hookrelay.repositories import CapturedRequestRepository, UserRepository, WebhookRepository

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


async def _seed_webhook(session, webhook_id="wh1", owner_id="user-a", forward_url=""):
    await UserRepository(session).upsert_user(owner_id)
    return await WebhookRepository(session).create_or_update(webhook_id, owner_id, forward_url, "Events", "stripe")


@pytest.mark.repository
class TestWebhookRepository:
    @pytest.mark.asyncio
    async def test_create_and_read_back(self, db_session):
        await _seed_webhook(db_session, forward_url="http://target.test/hook")
        repository = WebhookRepository(db_session)

        assert await repository.exists("wh1")
        assert await repository.get_forward_url("wh1") == "http://target.test/hook"
        webhook = await repository.get_for_owner("wh1", "user-a")
        assert webhook.name == "Events"
        assert webhook.source_type == "stripe"

    @pytest.mark.asyncio
    async def test_missing_webhook_has_empty_forward_url(self, db_session):
        assert await WebhookRepository(db_session).get_forward_url("nope") == ""

    @pytest.mark.asyncio
    async def test_upsert_keeps_owner(self, db_session):
        await _seed_webhook(db_session)
        await UserRepository(db_session).upsert_user("user-b")
        repository = WebhookRepository(db_session)

        webhook = await repository.create_or_update("wh1", "user-b", "http://new.test", "Renamed", "github")

        assert webhook.user_id == "user-a"
        assert webhook.forward_url == "http://new.test"
        assert webhook.source_type == "github"

    @pytest.mark.asyncio
    async def test_ownership_is_exact(self, db_session):
        await _seed_webhook(db_session)
        repository = WebhookRepository(db_session)

        assert await repository.check_ownership("wh1", "user-a") is True
        assert await repository.check_ownership("wh1", "user-b") is False
        assert await repository.check_ownership("missing", "user-a") is False
        assert await repository.get_for_owner("wh1", "user-b") is None

    @pytest.mark.asyncio
    async def test_update_and_delete_scoped_to_owner(self, db_session):
        await _seed_webhook(db_session)
        repository = WebhookRepository(db_session)

        assert await repository.update("wh1", "user-b", "http://evil.test", "x") == 0
        assert await repository.delete("wh1", "user-b") == 0
        assert await repository.update("wh1", "user-a", "http://ok.test", "y") == 1
        assert await repository.delete("wh1", "user-a") == 1
        assert not await repository.exists("wh1")

    @pytest.mark.asyncio
    async def test_partial_update_writes_only_given_fields(self, db_session):
        await _seed_webhook(db_session, forward_url="http://target.test/hook")
        repository = WebhookRepository(db_session)

        assert await repository.update("wh1", "user-a", name="Renamed") == 1
        assert await repository.get_forward_url("wh1") == "http://target.test/hook"

        assert await repository.update("wh1", "user-a", forward_url="") == 1
        result = await db_session.execute(select(Webhook.name, Webhook.forward_url).where(Webhook.id == "wh1"))
        assert result.one() == ("Renamed", "")

    @pytest.mark.asyncio
    async def test_update_without_fields_rejected(self, db_session):
        with pytest.raises(ValueError):
            await WebhookRepository(db_session).update("wh1", "user-a")

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session):
        await UserRepository(db_session).upsert_user("user-a")
        db_session.add_all(
            [
                Webhook(id="old", user_id="user-a", created_at=T0),
                Webhook(id="new", user_id="user-a", created_at=T0 + timedelta(minutes=5)),
            ]
        )
        await db_session.flush()

        webhooks = await WebhookRepository(db_session).list_for_owner("user-a")

        assert [w.id for w in webhooks] == ["new", "old"]
        assert await WebhookRepository(db_session).list_for_owner("user-b") == []

    @pytest.mark.asyncio
    async def test_delete_cascades_to_captured_requests(self, db_session):
        await _seed_webhook(db_session)
        requests = CapturedRequestRepository(db_session)
        await requests.save("wh1", "POST", {"x-test": ["1"]}, "body", T0)

        await WebhookRepository(db_session).delete("wh1", "user-a")

        result = await db_session.execute(select(CapturedRequest).where(CapturedRequest.webhook_id == "wh1"))
        assert result.scalars().all() == []


@pytest.mark.repository
class TestCapturedRequestRepository:
    @pytest.mark.asyncio
    async def test_newest_first_with_limit(self, db_session):
        await _seed_webhook(db_session)
        requests = CapturedRequestRepository(db_session)
        for minute in range(5):
            await requests.save("wh1", "POST", {}, f"body-{minute}", T0 + timedelta(minutes=minute))

        captured = await requests.list_for_webhook("wh1", limit=3)

        assert [c.body for c in captured] == ["body-4", "body-3", "body-2"]

    @pytest.mark.asyncio
    async def test_headers_multimap_stored(self, db_session):
        await _seed_webhook(db_session)
        requests = CapturedRequestRepository(db_session)
        await requests.save("wh1", "PUT", {"x-multi": ["a", "b"]}, "", T0)

        [captured] = await requests.list_for_webhook("wh1", limit=10)

        assert captured.method == "PUT"
        assert captured.headers == {"x-multi": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_clear_keeps_webhook(self, db_session):
        await _seed_webhook(db_session)
        requests = CapturedRequestRepository(db_session)
        await requests.save("wh1", "POST", {}, "a", T0)
        await requests.save("wh1", "POST", {}, "b", T0)

        assert await requests.clear("wh1") == 2
        assert await requests.list_for_webhook("wh1", limit=10) == []
        assert await WebhookRepository(db_session).exists("wh1")

    @pytest.mark.asyncio
    async def test_unknown_webhook_rejected(self, db_session):
        with pytest.raises(IntegrityError):
            await CapturedRequestRepository(db_session).save("ghost", "POST", {}, "", T0)


@pytest.mark.repository
class TestUserRepository:
    @pytest.mark.asyncio
    async def test_insert_then_update_email(self, db_session):
        users = UserRepository(db_session)

        await users.upsert_user("user-a")
        user = await users.upsert_user("user-a", "a@example.com")

        assert user.email == "a@example.com"

    @pytest.mark.asyncio
    async def test_known_email_reassigns_id_and_webhooks(self, clean_db):
        async with AsyncSessionLocal() as session:
            await UserRepository(session).upsert_user("old-id", "a@example.com")
            await WebhookRepository(session).create_or_update("wh1", "old-id", "", "Events", "stripe")
            await session.commit()

        async with AsyncSessionLocal() as session:
            user = await UserRepository(session).upsert_user("new-id", "a@example.com")
            await session.commit()
            assert user.id == "new-id"

        async with AsyncSessionLocal() as session:
            assert await session.get(UserDB, "old-id") is None
            assert await WebhookRepository(session).check_ownership("wh1", "new-id")

    @pytest.mark.asyncio
    async def test_register_never_touches_existing_email(self, clean_db):
        async with AsyncSessionLocal() as session:
            await UserRepository(session).upsert_user("victim", "v@example.com")
            await WebhookRepository(session).create_or_update("wh1", "victim", "", "Events", "stripe")
            await session.commit()

        async with AsyncSessionLocal() as session:
            assert await UserRepository(session).register("intruder", "v@example.com") is None
            await session.commit()

        async with AsyncSessionLocal() as session:
            assert await session.get(UserDB, "intruder") is None
            assert await WebhookRepository(session).check_ownership("wh1", "victim")

    @pytest.mark.asyncio
    async def test_register_new_user(self, db_session):
        user = await UserRepository(db_session).register("user-new", "new@example.com")

        assert user.id == "user-new"
        assert (await UserRepository(db_session).get_by_email("new@example.com")).id == "user-new"
