from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App Configuration
    APP_NAME: str = "SkillBridge API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    ALLOWED_HOSTS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./skillbridge.db"
    DATABASE_ECHO: bool = False
    DATABASE_ISOLATION_LEVEL: Optional[str] = None  # e.g. "REPEATABLE READ" on PostgreSQL

    # Authentication provider
    AUTH_PROVIDER_URL: Optional[str] = None  # e.g. http://localhost:5000/api/auth
    SESSION_COOKIE_NAME: str = "skillbridge.session_token"
    REQUIRE_EMAIL_VERIFICATION: bool = True

    # Admin seeding
    ADMIN_NAME: str = "Admin"
    ADMIN_EMAIL: str = "admin@skillbridge.local"
    ADMIN_PASSWORD: str = ""

    @property
    def async_database_url(self) -> str:
        """DATABASE_URL rewritten for the asyncpg driver when a bare postgres URL is given"""
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)
        return self.DATABASE_URL


# Create settings instance
settings = Settings()
