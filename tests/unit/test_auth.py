"""
Unit tests for session-token extraction, account checks, the remote provider and the gate dependencies
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest

from skillbridge.core.auth import (
    AuthenticatedUser,
    RemoteAuthProvider,
    ResolvedSession,
    SessionInfo,
    check_account,
    extract_session_token,
    get_current_user,
    require_role,
)
from skillbridge.core.config import Settings
from skillbridge.core.exceptions import (
    AccountInactiveError,
    AccountSuspendedError,
    AuthenticationError,
    AuthorizationError,
    AuthProviderError,
    EmailNotVerifiedError,
)
from skillbridge.models.user import UserRole, UserStatus

COOKIE = "skillbridge.session_token"


def make_user(**overrides) -> AuthenticatedUser:
    values = dict(
        id="u1",
        name="Ann",
        email="ann@example.com",
        role=UserRole.STUDENT,
        status=UserStatus.ACTIVE,
        email_verified=True,
    )
    values.update(overrides)
    return AuthenticatedUser(**values)


def make_request(headers=None, require_verified=True):
    return SimpleNamespace(
        headers=headers or {},
        state=SimpleNamespace(),
        app=SimpleNamespace(state=SimpleNamespace(settings=Settings(REQUIRE_EMAIL_VERIFICATION=require_verified))),
    )


class StaticProvider:
    def __init__(self, resolved=None, error=None):
        self.resolved = resolved
        self.error = error
        self.calls = 0

    async def get_session(self, headers):
        self.calls += 1
        if self.error:
            raise self.error
        return self.resolved


def resolved_for(user: AuthenticatedUser) -> ResolvedSession:
    return ResolvedSession(
        user=user,
        session=SessionInfo(id="s1", user_id=user.id, expires_at=datetime.now(timezone.utc) + timedelta(hours=1)),
    )


class TestExtractSessionToken:

    def test_bearer_token(self):
        assert extract_session_token({"authorization": "Bearer abc123"}, COOKIE) == "abc123"

    def test_signed_cookie_keeps_token_part(self):
        headers = {"cookie": f"theme=dark; {COOKIE}=tok123.c2lnbmF0dXJl"}
        assert extract_session_token(headers, COOKIE) == "tok123"

    def test_bearer_wins_over_cookie(self):
        headers = {"authorization": "Bearer first", "cookie": f"{COOKIE}=second"}
        assert extract_session_token(headers, COOKIE) == "first"

    @pytest.mark.parametrize(
        "headers",
        [{}, {"authorization": "Basic Zm9vOmJhcg=="}, {"authorization": "Bearer   "}, {"cookie": "other=1"}],
    )
    def test_no_token(self, headers):
        assert extract_session_token(headers, COOKIE) is None


class TestCheckAccount:

    def test_active_verified_passes(self):
        check_account(make_user())

    def test_unverified_email(self):
        with pytest.raises(EmailNotVerifiedError):
            check_account(make_user(email_verified=False))

    def test_unverified_email_allowed_when_not_required(self):
        check_account(make_user(email_verified=False), require_verified_email=False)

    def test_suspended(self):
        with pytest.raises(AccountSuspendedError) as exc_info:
            check_account(make_user(status=UserStatus.SUSPENDED))
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "ACCOUNT_SUSPENDED"

    def test_inactive(self):
        with pytest.raises(AccountInactiveError):
            check_account(make_user(status=UserStatus.INACTIVE))

    def test_verification_is_checked_before_status(self):
        with pytest.raises(EmailNotVerifiedError):
            check_account(make_user(email_verified=False, status=UserStatus.SUSPENDED))


class TestGateDependencies:

    async def test_no_session_is_unauthorized(self):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(make_request(), StaticProvider())
        assert exc_info.value.status_code == 401

    async def test_attaches_identity_to_request_state(self):
        user = make_user()
        request = make_request()
        resolved = resolved_for(user)

        assert await get_current_user(request, StaticProvider(resolved)) == user
        assert request.state.user == user
        assert request.state.session == resolved.session

    async def test_reuses_identity_already_on_request(self):
        request = make_request()
        provider = StaticProvider(resolved_for(make_user()))
        await get_current_user(request, provider)
        await get_current_user(request, provider)
        assert provider.calls == 1

    async def test_provider_failure_is_auth_error(self):
        with pytest.raises(AuthProviderError) as exc_info:
            await get_current_user(make_request(), StaticProvider(error=RuntimeError("boom")))
        assert exc_info.value.code == "AUTH_ERROR"

    async def test_unverified_email_rejected_by_default(self):
        provider = StaticProvider(resolved_for(make_user(email_verified=False)))
        with pytest.raises(EmailNotVerifiedError):
            await get_current_user(make_request(), provider)

    async def test_unverified_email_allowed_when_disabled(self):
        provider = StaticProvider(resolved_for(make_user(email_verified=False)))
        user = await get_current_user(make_request(require_verified=False), provider)
        assert user.id == "u1"

    async def test_role_allowed(self):
        dependency = require_role(UserRole.TUTOR, UserRole.ADMIN)
        user = make_user(role=UserRole.ADMIN)
        assert await dependency(current_user=user) == user

    async def test_role_forbidden(self):
        dependency = require_role(UserRole.STUDENT)
        with pytest.raises(AuthorizationError) as exc_info:
            await dependency(current_user=make_user(role=UserRole.TUTOR))
        assert exc_info.value.code == "FORBIDDEN"


class TestRemoteAuthProvider:

    SESSION_PAYLOAD = {
        "user": {
            "id": "u1",
            "name": "Ann",
            "email": "ann@example.com",
            "emailVerified": True,
            "role": "TUTOR",
            "status": "ACTIVE",
            "image": None,
        },
        "session": {
            "id": "s1",
            "userId": "u1",
            "expiresAt": "2026-12-01T00:00:00.000Z",
            "ipAddress": "127.0.0.1",
            "userAgent": "pytest",
        },
    }

    def _provider(self, handler) -> RemoteAuthProvider:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RemoteAuthProvider("http://auth.local/api/auth/", client=client)

    async def test_parses_session_and_forwards_credentials(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["cookie"] = request.headers.get("cookie")
            return httpx.Response(200, json=self.SESSION_PAYLOAD)

        provider = self._provider(handler)
        resolved = await provider.get_session({"cookie": f"{COOKIE}=tok.sig", "user-agent": "pytest"})

        assert seen["url"] == "http://auth.local/api/auth/get-session"
        assert seen["cookie"] == f"{COOKIE}=tok.sig"
        assert resolved.user.role is UserRole.TUTOR
        assert resolved.user.email_verified is True
        assert resolved.session.expires_at == datetime(2026, 12, 1, tzinfo=timezone.utc)
        assert resolved.session.ip_address == "127.0.0.1"

    async def test_null_session(self):
        provider = self._provider(lambda request: httpx.Response(200, json=None))
        assert await provider.get_session({"authorization": "Bearer x"}) is None

    @pytest.mark.parametrize("body", [b"null", b"", b"  ", b"<html>signed out</html>", b"[]"])
    async def test_bodies_without_a_session(self, body):
        provider = self._provider(lambda request: httpx.Response(200, content=body))
        assert await provider.get_session({"authorization": "Bearer x"}) is None

    async def test_gate_treats_empty_session_body_as_unauthenticated(self):
        provider = self._provider(lambda request: httpx.Response(200, content=b"null"))
        with pytest.raises(AuthenticationError):
            await get_current_user(make_request({"authorization": "Bearer x"}), provider)

    async def test_error_status_resolves_to_nothing(self):
        provider = self._provider(lambda request: httpx.Response(500, json={"error": "down"}))
        assert await provider.get_session({"authorization": "Bearer x"}) is None

    async def test_no_credentials_skips_the_call(self):
        def handler(request):
            raise AssertionError("provider should not be called")

        provider = self._provider(handler)
        assert await provider.get_session({"accept": "application/json"}) is None

    def test_parse_accepts_snake_case(self):
        resolved = RemoteAuthProvider._parse(
            {
                "user": {"id": "u2", "name": "Bo", "email": "bo@example.com", "email_verified": False},
                "session": {"id": "s2", "user_id": "u2", "expires_at": "2026-12-01T00:00:00+00:00"},
            }
        )
        assert resolved.user.role is UserRole.STUDENT
        assert resolved.user.status is UserStatus.ACTIVE
        assert resolved.user.email_verified is False
        assert resolved.session.user_id == "u2"
