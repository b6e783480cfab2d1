"""
Unit tests for the application module and factory wiring
"""
from fastapi import FastAPI

import skillbridge.main
from skillbridge.core.auth import RemoteAuthProvider, SessionStoreAuthProvider
from skillbridge.core.config import Settings
from skillbridge.main import build_auth_provider, create_app


def test_module_level_app_is_built():
    assert isinstance(skillbridge.main.app, FastAPI)


async def test_role_routers_are_mounted(database):
    app = create_app(settings=Settings(LOG_LEVEL="WARNING"), database=database)
    paths = {route.path for route in app.routes}

    assert "/api/v1/student/tutors" in paths
    assert "/api/v1/tutor/dashboard" in paths
    assert "/api/v1/admin/users/{user_id}" in paths
    assert "/api/auth/{path:path}" in paths
    assert "/health" in paths


async def test_auth_provider_follows_configuration(database):
    remote = build_auth_provider(Settings(AUTH_PROVIDER_URL="http://auth.local/api/auth"), database)
    local = build_auth_provider(Settings(AUTH_PROVIDER_URL=None), database)

    assert isinstance(remote, RemoteAuthProvider)
    assert isinstance(local, SessionStoreAuthProvider)
