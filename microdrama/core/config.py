# microdrama/core/config.py
from __future__ import annotations

"""
# MicroDrama — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- Plan prices and the free-preview limit live here so they can be tuned per
  environment without touching the engine.
- Repository implementations are swappable via dotted `module:Class` paths.

## Usage
    from microdrama.core.config import settings
"""

from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - Explicit secret for JWT verification; issuer/audience optional.

    Billing:
        - Prices are integral minor units (paise for INR). A subscription
          snapshots its price at purchase, so changing these never rewrites
          existing rows.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "MicroDrama API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT (verification only) ────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    JWT_ISSUER: Optional[str] = None
    JWT_AUDIENCE: Optional[str] = None

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = Field(...)
    POSTGRES_DB: str = "microdrama"

    # ── CORS ─────────────────────────────────────────────────
    FRONTEND_ORIGINS: Optional[str] = "http://localhost:3000"  # CSV

    # ── Plans & entitlement ──────────────────────────────────
    PLAN_PRICE_WEEKLY: int = Field(99, ge=0)
    PLAN_PRICE_MONTHLY: int = Field(199, ge=0)
    CURRENCY: str = "INR"
    FREE_PREVIEW_LIMIT: int = Field(2, ge=0, le=100)

    # ── Repositories ─────────────────────────────────────────
    SUBSCRIPTION_REPOSITORY_IMPL: Optional[str] = None  # e.g. microdrama.repositories.subscriptions_sql:SqlSubscriptionRepository
    EPISODE_REPOSITORY_IMPL: Optional[str] = None
    EPISODES_DATA_PATH: Optional[str] = None

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _normalize_frontend_csv(cls, v):
        return None if v is None else ",".join(_split_csv(str(v)))

    @field_validator("CURRENCY", mode="before")
    @classmethod
    def _upper_currency(cls, v) -> str:
        return str(v or "INR").strip().upper()

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def DATABASE_URL(self) -> str:
        """Sync DSN."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async SQLAlchemy DSN."""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def TEST_DATABASE_URL(self) -> str:
        """Async test DSN (suffix `_test`)."""
        return (
            self.DATABASE_URL
            .replace(self.POSTGRES_DB, f"{self.POSTGRES_DB}_test")
            .replace("postgresql://", "postgresql+asyncpg://")
        )

    @property
    def frontend_origins_list(self) -> List[str]:
        return _split_csv(self.FRONTEND_ORIGINS)


# Singleton instance
settings = Settings()
