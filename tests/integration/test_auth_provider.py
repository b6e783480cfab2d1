"""
Session-table provider, auth pass-through and admin seeding
"""
import json
from datetime import timedelta

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from skillbridge.core.auth import SessionStoreAuthProvider
from skillbridge.core.config import Settings
from skillbridge.core.database import utcnow
from skillbridge.core.exceptions import AuthProviderUnavailableError, ConflictError
from skillbridge.main import create_app
from skillbridge.models.auth_session import AuthSession
from skillbridge.models.user import User, UserRole
from skillbridge.scripts.seed_admin import seed_admin

pytestmark = pytest.mark.integration

AUTH_URL = "http://auth.test/api/auth"


class TestSessionStoreAuthProvider:

    @pytest.fixture
    def provider(self, database):
        return SessionStoreAuthProvider(database.session_factory, cookie_name="skillbridge.session_token")

    async def add_session(self, db, user, token, expires_in=timedelta(days=1)):
        db.add(AuthSession(token=token, user_id=user.id, expires_at=utcnow() + expires_in))
        await db.commit()

    async def test_bearer_token(self, db, factory, provider):
        user = await factory.user(UserRole.TUTOR)
        await self.add_session(db, user, "abc")

        resolved = await provider.get_session({"authorization": "Bearer abc"})

        assert resolved.user.id == user.id
        assert resolved.user.role is UserRole.TUTOR
        assert resolved.session.user_id == user.id

    async def test_signed_cookie(self, db, factory, provider):
        user = await factory.user()
        await self.add_session(db, user, "abc")

        resolved = await provider.get_session({"cookie": "theme=dark; skillbridge.session_token=abc.c2lnbmF0dXJl"})

        assert resolved.user.id == user.id

    async def test_expired_session(self, db, factory, provider):
        user = await factory.user()
        await self.add_session(db, user, "old", expires_in=timedelta(minutes=-1))

        assert await provider.get_session({"authorization": "Bearer old"}) is None

    async def test_unknown_or_missing_token(self, provider):
        assert await provider.get_session({"authorization": "Bearer nope"}) is None
        assert await provider.get_session({}) is None

    async def test_gate_uses_session_table(self, test_settings, database, db, factory):
        student = await factory.student()
        user = await db.get(User, student.user_id)
        await self.add_session(db, user, "tok")
        app = create_app(settings=test_settings, database=database)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/student/me", headers={"Authorization": "Bearer tok"})

        assert response.status_code == 200
        assert response.json()["data"]["student_id"] == student.student_id


class TestAuthProxy:

    async def proxy_client(self, database, handler, auth_url=AUTH_URL):
        settings = Settings(LOG_LEVEL="WARNING", AUTH_PROVIDER_URL=auth_url)
        upstream = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app = create_app(settings=settings, database=database, auth_http_client=upstream)
        return AsyncClient(transport=ASGITransport(app=app, raise_app_exceptions=False), base_url="http://test")

    async def test_forwards_request_and_response(self, database):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["cookie"] = request.headers.get("cookie")
            return httpx.Response(
                200,
                json={"ok": True},
                headers={"set-cookie": "skillbridge.session_token=t.sig; Path=/; HttpOnly"},
            )

        async with await self.proxy_client(database, handler) as client:
            response = await client.post(
                "/api/auth/sign-in/email?remember=1",
                json={"email": "a@example.com", "password": "pw"},
                headers={"cookie": "x=1"},
            )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert "skillbridge.session_token=t.sig" in response.headers["set-cookie"]
        assert seen["url"] == f"{AUTH_URL}/sign-in/email?remember=1"
        assert seen["body"] == {"email": "a@example.com", "password": "pw"}
        assert seen["cookie"] == "x=1"

    async def test_upstream_errors_pass_through(self, database):
        def handler(request):
            return httpx.Response(401, json={"message": "Invalid password"})

        async with await self.proxy_client(database, handler) as client:
            response = await client.post("/api/auth/sign-in/email", json={})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid password"}

    async def test_unreachable_provider(self, database):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with await self.proxy_client(database, handler) as client:
            response = await client.get("/api/auth/get-session")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "AUTH_ERROR"

    async def test_unconfigured_provider(self, client):
        response = await client.get("/api/auth/get-session")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "AUTH_PROVIDER_UNAVAILABLE"


class TestSeedAdmin:

    @pytest.fixture
    def seed_settings(self):
        return Settings(
            LOG_LEVEL="WARNING",
            AUTH_PROVIDER_URL=AUTH_URL,
            ADMIN_NAME="Root",
            ADMIN_EMAIL="root@skillbridge.local",
            ADMIN_PASSWORD="s3cret-pass",
            ALLOWED_HOSTS=["http://localhost:3000"],
        )

    async def test_signs_up_and_promotes(self, database, db, seed_settings):
        requests = []

        async def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            payload = json.loads(request.content)
            async with database.session() as session:
                session.add(User(name=payload["name"], email=payload["email"], email_verified=False))
                await session.commit()
            return httpx.Response(200, json={"token": "t"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            user_id = await seed_admin(seed_settings, database, client=client)

        assert str(requests[0].url) == f"{AUTH_URL}/sign-up/email"
        assert requests[0].headers["origin"] == "http://localhost:3000"
        row = (await db.execute(select(User.role, User.email_verified).where(User.id == user_id))).one()
        assert row == (UserRole.ADMIN, True)

    async def test_existing_email_is_a_conflict(self, database, factory, seed_settings):
        await factory.user(UserRole.STUDENT, email="root@skillbridge.local")

        with pytest.raises(ConflictError):
            await seed_admin(seed_settings, database)

    async def test_provider_must_be_configured(self, database, seed_settings):
        settings = seed_settings.model_copy(update={"AUTH_PROVIDER_URL": None})

        with pytest.raises(AuthProviderUnavailableError):
            await seed_admin(settings, database)

    async def test_provider_rejection_propagates(self, database, seed_settings):
        def handler(request):
            return httpx.Response(422, json={"message": "Password too short"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await seed_admin(seed_settings, database, client=client)
