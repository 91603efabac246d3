"""Integration tests for the admin action routes."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketadmin.core.audit import AuditLogWriter
from marketadmin.core.audit.models import AuditLog
from marketadmin.core.auth import create_access_token
from marketadmin.core.rate_limit import get_rate_limiter, presets
from marketadmin.core.tasks import BestEffortDispatcher
from marketadmin.modules.notifications.models import Notification
from marketadmin.modules.professionals.models import Professional
from marketadmin.modules.users.models import User
from tests.factories.users import ProfessionalFactory


pytestmark = pytest.mark.integration

RATE_LIMIT_HEADERS = ("X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset")


async def _audit_entries(
    session_factory: async_sessionmaker[AsyncSession], target_id: str
) -> list[AuditLog]:
    async with session_factory() as session:
        result = await session.execute(
            select(AuditLog).where(AuditLog.target_id == target_id)
        )
        return list(result.scalars().all())


async def _notifications(
    session_factory: async_sessionmaker[AsyncSession], recipient_id: str
) -> list[Notification]:
    async with session_factory() as session:
        result = await session.execute(
            select(Notification).where(Notification.recipient_id == recipient_id)
        )
        return list(result.scalars().all())


class TestApproveProfessional:
    """POST /api/v1/admin/professionals/{id}/approve"""

    async def test_approve_pending(
        self,
        client: AsyncClient,
        admin: User,
        admin_headers: dict[str, str],
        pending_professional: Professional,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BestEffortDispatcher,
    ):
        response = await client.post(
            f"/api/v1/admin/professionals/{pending_professional.id}/approve",
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Professional approved successfully"
        assert body["data"] == {
            "professional_id": pending_professional.id,
            "previous_status": "pending",
            "new_status": "approved",
        }
        for header in RATE_LIMIT_HEADERS:
            assert header in response.headers

        async with session_factory() as session:
            stored = await session.get(Professional, pending_professional.id)
        assert stored.status == "approved"
        assert stored.reviewed_by == admin.id
        assert stored.reviewed_at is not None

        await dispatcher.drain(timeout=5)

        entries = await _audit_entries(session_factory, pending_professional.id)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == "approve_professional"
        assert entry.target_type == "professional"
        assert entry.admin_id == admin.id
        assert entry.admin_email == "admin@example.com"
        assert entry.details["previous_status"] == "pending"
        assert entry.details["new_status"] == "approved"
        assert entry.details["professional_name"] == pending_professional.name

        notifications = await _notifications(session_factory, pending_professional.user_id)
        assert len(notifications) == 1
        assert notifications[0].type == "professional_approved"
        assert notifications[0].read is False

    async def test_reject_pending(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        pending_professional: Professional,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BestEffortDispatcher,
    ):
        response = await client.post(
            f"/api/v1/admin/professionals/{pending_professional.id}/reject",
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Professional rejected successfully"
        assert response.json()["data"]["new_status"] == "rejected"

        await dispatcher.drain(timeout=5)
        entries = await _audit_entries(session_factory, pending_professional.id)
        assert [e.action for e in entries] == ["reject_professional"]
        notifications = await _notifications(session_factory, pending_professional.user_id)
        assert [n.type for n in notifications] == ["professional_rejected"]

    @pytest.mark.parametrize("second", ["approve", "reject"])
    async def test_already_reviewed_is_rejected(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        pending_professional: Professional,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BestEffortDispatcher,
        second: str,
    ):
        url = f"/api/v1/admin/professionals/{pending_professional.id}"
        first = await client.post(f"{url}/approve", headers=admin_headers)
        assert first.status_code == 200

        response = await client.post(f"{url}/{second}", headers=admin_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Professional not found in pending state"
        assert body["status"] == 400

        await dispatcher.drain(timeout=5)
        async with session_factory() as session:
            stored = await session.get(Professional, pending_professional.id)
        assert stored.status == "approved"
        assert len(await _audit_entries(session_factory, pending_professional.id)) == 1

    async def test_missing_professional(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
    ):
        response = await client.post(
            "/api/v1/admin/professionals/does-not-exist/approve",
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Professional not found"
        for header in RATE_LIMIT_HEADERS:
            assert header in response.headers


class TestAuthorization:
    """Every failure mode yields the same 401."""

    async def _assert_uniform_401(self, client: AsyncClient, headers: dict[str, str]) -> dict:
        response = await client.post(
            "/api/v1/admin/professionals/any-id/approve",
            headers=headers,
        )
        assert response.status_code == 401
        body = response.json()
        return {key: body[key] for key in ("error", "type", "title", "status", "detail")}

    async def test_all_failures_look_alike(
        self,
        client: AsyncClient,
        member: User,
        admin: User,
    ):
        bodies = [
            await self._assert_uniform_401(client, {}),
            await self._assert_uniform_401(client, {"Authorization": "Basic abc"}),
            await self._assert_uniform_401(client, {"Authorization": "Bearer not-a-jwt"}),
            await self._assert_uniform_401(
                client, {"Authorization": f"Bearer {create_access_token('ghost-user')}"}
            ),
            await self._assert_uniform_401(
                client, {"Authorization": f"Bearer {create_access_token(member.id)}"}
            ),
        ]

        assert all(body == bodies[0] for body in bodies)
        assert bodies[0]["error"] == "Unauthorized. Admin access required."

    async def test_non_admin_cannot_change_status(
        self,
        client: AsyncClient,
        member: User,
        bearer,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        response = await client.post(
            f"/api/v1/admin/users/{member.id}/status",
            headers=bearer(member.id),
            json={"status": "inactive"},
        )

        assert response.status_code == 401
        async with session_factory() as session:
            stored = await session.get(User, member.id)
        assert stored.status == "active"

    async def test_malformed_body_without_auth_is_401(self, client: AsyncClient, member: User):
        response = await client.post(
            f"/api/v1/admin/users/{member.id}/status",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 401


class TestRateLimit:
    """The admin preset is checked before anything else."""

    async def test_limit_then_429(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
    ):
        url = "/api/v1/admin/professionals/missing/approve"
        limit = presets.admin.max_requests

        for _ in range(limit):
            response = await client.post(url, headers=admin_headers)
            assert response.status_code == 404

        response = await client.post(url, headers=admin_headers)

        assert response.status_code == 429
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert "Retry-After" in response.headers

    async def test_429_before_authorization(self, client: AsyncClient, admin: User):
        url = "/api/v1/admin/professionals/missing/approve"
        for _ in range(presets.admin.max_requests):
            await client.post(url)

        response = await client.post(url)

        assert response.status_code == 429

    async def test_remaining_decreases(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
    ):
        url = "/api/v1/admin/professionals/missing/approve"
        first = await client.post(url, headers=admin_headers)
        second = await client.post(url, headers=admin_headers)

        assert int(first.headers["X-RateLimit-Remaining"]) == presets.admin.max_requests - 1
        assert int(second.headers["X-RateLimit-Remaining"]) == presets.admin.max_requests - 2


class TestUserStatus:
    """POST /api/v1/admin/users/{id}/status"""

    async def test_update_status(
        self,
        client: AsyncClient,
        admin: User,
        admin_headers: dict[str, str],
        member: User,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BestEffortDispatcher,
    ):
        response = await client.post(
            f"/api/v1/admin/users/{member.id}/status",
            headers=admin_headers,
            json={"status": "under_review"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == 'Status updated to "Under review".'
        assert body["data"] == {
            "user_id": member.id,
            "previous_status": "active",
            "new_status": "under_review",
        }

        async with session_factory() as session:
            stored = await session.get(User, member.id)
        assert stored.status == "under_review"
        assert stored.status_updated_by == admin.id
        assert stored.status_updated_at is not None

        await dispatcher.drain(timeout=5)
        entries = await _audit_entries(session_factory, member.id)
        assert len(entries) == 1
        assert entries[0].action == "update_user_status"
        assert entries[0].details["user_email"] == member.email
        notifications = await _notifications(session_factory, member.id)
        assert [n.type for n in notifications] == ["account_status_changed"]

    async def test_same_status_is_applied_and_audited(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        member: User,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BestEffortDispatcher,
    ):
        response = await client.post(
            f"/api/v1/admin/users/{member.id}/status",
            headers=admin_headers,
            json={"status": "active"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["previous_status"] == "active"
        assert response.json()["data"]["new_status"] == "active"

        await dispatcher.drain(timeout=5)
        assert len(await _audit_entries(session_factory, member.id)) == 1

    async def test_invalid_status(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        member: User,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        response = await client.post(
            f"/api/v1/admin/users/{member.id}/status",
            headers=admin_headers,
            json={"status": "banned"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Invalid status. Valid values: active, under_review, rejected, inactive"
        )
        async with session_factory() as session:
            stored = await session.get(User, member.id)
        assert stored.status == "active"

    async def test_invalid_status_checked_before_lookup(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
    ):
        response = await client.post(
            "/api/v1/admin/users/no-such-user/status",
            headers=admin_headers,
            json={"status": "banned"},
        )

        assert response.status_code == 400

    async def test_valid_status_for_missing_user(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
    ):
        response = await client.post(
            "/api/v1/admin/users/no-such-user/status",
            headers=admin_headers,
            json={"status": "inactive"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    async def test_malformed_body(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        member: User,
    ):
        response = await client.post(
            f"/api/v1/admin/users/{member.id}/status",
            headers={**admin_headers, "Content-Type": "application/json"},
            content=b"{not json",
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Request body must be valid JSON"


class TestBestEffortFollowUp:
    """Audit and notification failures never change the response."""

    async def test_audit_failure_still_succeeds(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        pending_professional: Professional,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BestEffortDispatcher,
        monkeypatch: pytest.MonkeyPatch,
    ):
        async def failing_record(self, *args, **kwargs):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(AuditLogWriter, "record", failing_record)

        response = await client.post(
            f"/api/v1/admin/professionals/{pending_professional.id}/approve",
            headers=admin_headers,
        )

        assert response.status_code == 200

        await dispatcher.drain(timeout=5)

        async with session_factory() as session:
            stored = await session.get(Professional, pending_professional.id)
        assert stored.status == "approved"
        assert await _audit_entries(session_factory, pending_professional.id) == []
        assert [f.step for f in dispatcher.recent_failures] == ["audit"]
        assert dispatcher.recent_failures[0].context["target_id"] == pending_professional.id

        notifications = await _notifications(session_factory, pending_professional.user_id)
        assert len(notifications) == 1

    async def test_professional_without_owner_is_not_notified(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        db: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BestEffortDispatcher,
    ):
        orphan = ProfessionalFactory.build(user_id=None)
        db.add(orphan)
        await db.commit()

        response = await client.post(
            f"/api/v1/admin/professionals/{orphan.id}/approve",
            headers=admin_headers,
        )

        assert response.status_code == 200
        await dispatcher.drain(timeout=5)
        assert len(await _audit_entries(session_factory, orphan.id)) == 1
        assert list(dispatcher.recent_failures) == []

    async def test_live_subscriber_receives_feed(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        pending_professional: Professional,
        hub,
        dispatcher: BestEffortDispatcher,
    ):
        received: asyncio.Queue = asyncio.Queue()
        subscription = hub.subscribe(pending_professional.user_id, received.put_nowait)

        response = await client.post(
            f"/api/v1/admin/professionals/{pending_professional.id}/approve",
            headers=admin_headers,
        )
        assert response.status_code == 200
        await dispatcher.drain(timeout=5)

        feed = await asyncio.wait_for(received.get(), timeout=2)
        assert feed.recipient_id == pending_professional.user_id
        assert feed.unread_count == 1
        assert feed.notifications[0].type == "professional_approved"
        subscription.unsubscribe()


class TestLimiterOutage:
    """The limiter fails closed and the 503 is documented."""

    async def test_backend_error_is_503(
        self,
        app,
        client: AsyncClient,
        admin_headers: dict[str, str],
        pending_professional: Professional,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        broken = AsyncMock()
        broken.is_allowed.side_effect = RedisConnectionError("connection refused")
        app.dependency_overrides[get_rate_limiter] = lambda: broken

        response = await client.post(
            f"/api/v1/admin/professionals/{pending_professional.id}/approve",
            headers=admin_headers,
        )

        assert response.status_code == 503
        assert response.json()["type"].endswith("/errors/rate_limiter_unavailable")
        async with session_factory() as session:
            stored = await session.get(Professional, pending_professional.id)
        assert stored.status == "pending"

    async def test_openapi_lists_503(self, client: AsyncClient):
        paths = (await client.get("/openapi.json")).json()["paths"]

        for path in (
            "/api/v1/admin/professionals/{professional_id}/approve",
            "/api/v1/admin/professionals/{professional_id}/reject",
            "/api/v1/admin/users/{user_id}/status",
        ):
            assert "503" in paths[path]["post"]["responses"]
