"""Session resolution and role checks for protected routes.

The identity subsystem is external: an ``AuthProvider`` turns request headers
into a resolved ``{user, session}`` pair or ``None``. Two providers ship with
the service, one reading the provider's session table from the shared store
and one asking the provider over HTTP. The gate itself only reads; it never
writes to the user record.

Example:
    @router.get("/me")
    async def get_my_profile(current_user: AuthenticatedUser = Depends(require_role(UserRole.STUDENT))):
        ...
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Protocol

import httpx
from fastapi import Depends, Request
from sqlalchemy import select

from skillbridge.core.config import settings as default_settings
from skillbridge.core.exceptions import (
    AccountInactiveError,
    AccountSuspendedError,
    AuthenticationError,
    AuthorizationError,
    AuthProviderError,
    EmailNotVerifiedError,
    SkillBridgeException,
)
from skillbridge.models.auth_session import AuthSession
from skillbridge.models.user import User, UserRole, UserStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    name: str
    email: str
    role: UserRole
    status: UserStatus
    email_verified: bool
    image: Optional[str] = None


@dataclass(frozen=True)
class SessionInfo:
    id: str
    user_id: str
    expires_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class ResolvedSession:
    user: AuthenticatedUser
    session: SessionInfo


class AuthProvider(Protocol):
    async def get_session(self, headers: Mapping[str, str]) -> Optional[ResolvedSession]:
        ...


def extract_session_token(headers: Mapping[str, str], cookie_name: str) -> Optional[str]:
    """Bearer token first, then the session cookie (``token.signature`` keeps the token part)"""
    authorization = headers.get("authorization") or ""
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    cookie_header = headers.get("cookie") or ""
    for part in cookie_header.split(";"):
        name, _, value = part.strip().partition("=")
        if name == cookie_name and value:
            return value.split(".", 1)[0]
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionStoreAuthProvider:
    """Resolves sessions from the ``auth_sessions`` table the provider shares with us"""

    def __init__(self, session_factory, cookie_name: str = default_settings.SESSION_COOKIE_NAME):
        self.session_factory = session_factory
        self.cookie_name = cookie_name

    async def get_session(self, headers: Mapping[str, str]) -> Optional[ResolvedSession]:
        token = extract_session_token(headers, self.cookie_name)
        if not token:
            return None

        async with self.session_factory() as db:
            result = await db.execute(
                select(AuthSession, User)
                .join(User, AuthSession.user_id == User.id)
                .where(AuthSession.token == token)
            )
            row = result.first()

        if row is None:
            return None
        auth_session, user = row
        if _as_utc(auth_session.expires_at) <= datetime.now(timezone.utc):
            return None

        return ResolvedSession(
            user=AuthenticatedUser(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                status=user.status,
                email_verified=user.email_verified,
                image=user.image,
            ),
            session=SessionInfo(
                id=auth_session.id,
                user_id=auth_session.user_id,
                expires_at=auth_session.expires_at,
                ip_address=auth_session.ip_address,
                user_agent=auth_session.user_agent,
            ),
        )


class RemoteAuthProvider:
    """Asks the auth provider's ``/get-session`` endpoint, forwarding the caller's credentials"""

    FORWARDED_HEADERS = ("cookie", "authorization")

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout

    async def get_session(self, headers: Mapping[str, str]) -> Optional[ResolvedSession]:
        forwarded = {name: headers[name] for name in self.FORWARDED_HEADERS if headers.get(name)}
        if not forwarded:
            return None

        url = f"{self.base_url}/get-session"
        if self.client is not None:
            response = await self.client.get(url, headers=forwarded)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=forwarded)

        if response.status_code != 200:
            logger.warning(f"Auth provider returned {response.status_code} for session lookup")
            return None

        # An absent session comes back as an empty body or a JSON null
        if not response.content.strip():
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Auth provider returned a non-JSON session body")
            return None
        if not isinstance(payload, dict) or not payload.get("user") or not payload.get("session"):
            return None
        return self._parse(payload)

    @staticmethod
    def _parse(payload: dict) -> ResolvedSession:
        user = payload["user"]
        session = payload["session"]
        return ResolvedSession(
            user=AuthenticatedUser(
                id=user["id"],
                name=user.get("name") or "",
                email=user["email"],
                role=UserRole(user.get("role") or UserRole.STUDENT.value),
                status=UserStatus(user.get("status") or UserStatus.ACTIVE.value),
                email_verified=bool(user.get("emailVerified", user.get("email_verified", False))),
                image=user.get("image"),
            ),
            session=SessionInfo(
                id=session["id"],
                user_id=session.get("userId") or session.get("user_id") or user["id"],
                expires_at=datetime.fromisoformat(
                    str(session.get("expiresAt") or session.get("expires_at")).replace("Z", "+00:00")
                ),
                ip_address=session.get("ipAddress") or session.get("ip_address"),
                user_agent=session.get("userAgent") or session.get("user_agent"),
            ),
        )


# -------------------------
# Gate
# -------------------------

def check_account(user: AuthenticatedUser, require_verified_email: bool = True) -> None:
    """Raise for unverified, suspended or inactive accounts"""
    if require_verified_email and not user.email_verified:
        raise EmailNotVerifiedError()
    if user.status == UserStatus.SUSPENDED:
        raise AccountSuspendedError()
    if user.status == UserStatus.INACTIVE:
        raise AccountInactiveError()


def get_auth_provider(request: Request) -> AuthProvider:
    return request.app.state.auth_provider


async def get_current_user(
    request: Request,
    provider: AuthProvider = Depends(get_auth_provider),
) -> AuthenticatedUser:
    """Resolve the caller's session and attach it to ``request.state``"""
    user = getattr(request.state, "user", None)
    if user is None:
        try:
            resolved = await provider.get_session(request.headers)
        except SkillBridgeException:
            raise
        except Exception as e:
            logger.error(f"Auth provider session lookup failed: {e}", exc_info=True)
            raise AuthProviderError()

        if resolved is None:
            raise AuthenticationError()
        user = resolved.user
        request.state.user = user
        request.state.session = resolved.session

    settings = getattr(request.app.state, "settings", default_settings)
    check_account(user, require_verified_email=settings.REQUIRE_EMAIL_VERIFICATION)
    return user


def require_role(*allowed_roles: UserRole) -> Callable:
    """Dependency factory: authenticate (if not done yet) and check the caller's role"""
    allowed = frozenset(allowed_roles)

    async def dependency(current_user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if current_user.role not in allowed:
            raise AuthorizationError()
        return current_user

    return dependency


require_student = require_role(UserRole.STUDENT)
require_tutor = require_role(UserRole.TUTOR)
require_admin = require_role(UserRole.ADMIN)
