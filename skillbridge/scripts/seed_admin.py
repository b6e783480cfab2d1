"""
Admin Seeder

Signs the configured admin up through the auth provider, then marks the
account e-mail verified and gives it the ADMIN role.
Usage: python -m skillbridge.scripts.seed_admin [--name NAME] [--email EMAIL]
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional

import httpx
from sqlalchemy import select

from skillbridge.core.config import Settings, settings as default_settings
from skillbridge.core.database import Database
from skillbridge.core.exceptions import AuthProviderUnavailableError, ConflictError, SkillBridgeException
from skillbridge.models.user import User
from skillbridge.services.admin_service import AdminService

logger = logging.getLogger(__name__)


async def seed_admin(
    settings: Settings,
    database: Database,
    client: Optional[httpx.AsyncClient] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> str:
    """Create the admin account and return its user id"""
    name = name or settings.ADMIN_NAME
    email = email or settings.ADMIN_EMAIL
    password = password or settings.ADMIN_PASSWORD
    if not settings.AUTH_PROVIDER_URL:
        raise AuthProviderUnavailableError()
    if not password:
        raise ValueError("ADMIN_PASSWORD must be set")

    async with database.session() as db:
        exists = await db.scalar(select(User.id).where(User.email == email))
    if exists is not None:
        raise ConflictError(f"User {email} already exists.")

    url = f"{settings.AUTH_PROVIDER_URL.rstrip('/')}/sign-up/email"
    payload = {"name": name, "email": email, "password": password}
    origin = settings.ALLOWED_HOSTS[0] if settings.ALLOWED_HOSTS else None
    headers = {"origin": origin} if origin else {}
    if client is not None:
        response = await client.post(url, json=payload, headers=headers)
    else:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(url, json=payload, headers=headers)
    response.raise_for_status()
    logger.info(f"Signed up {email} through the auth provider")

    async with database.session() as db:
        user_id = await db.scalar(select(User.id).where(User.email == email))
        if user_id is None:
            raise RuntimeError(f"Auth provider did not create a user record for {email}")
        admin_service = AdminService(db)
        await admin_service.mark_email_verified(user_id)
        await admin_service.ensure_admin_role(user_id)

    logger.info(f"Admin {email} ({user_id}) is verified and has the ADMIN role")
    return user_id


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Create the SkillBridge admin account")
    parser.add_argument("--name", help="Admin display name (default: ADMIN_NAME)")
    parser.add_argument("--email", help="Admin e-mail (default: ADMIN_EMAIL)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    async def run():
        database = Database.from_settings(default_settings)
        try:
            await seed_admin(default_settings, database, name=args.name, email=args.email)
        finally:
            await database.dispose()

    try:
        asyncio.run(run())
    except (SkillBridgeException, httpx.HTTPError, ValueError, RuntimeError) as e:
        logger.error(f"Admin seeding failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
