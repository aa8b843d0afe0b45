# memberhub/core/config.py
from __future__ import annotations

"""
# MemberHub — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- Robust URL normalization and CSV → list helpers.
- Bunny.net credentials are optional at import time so the app boots in dev;
  the media signer and the Bunny client raise `ConfigurationError` when they
  are actually needed and missing.

## Usage
    from memberhub.core.config import settings
"""

import logging
from decimal import Decimal
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


def _normalize_url_like(v: str | None, *, require_scheme: bool = True) -> str:
    """Normalize to a string URL without trailing slash."""
    s = (v or "").strip()
    if not s:
        return ""
    if require_scheme and not (s.startswith("http://") or s.startswith("https://")):
        s = "https://" + s
    return s.rstrip("/")


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - Explicit secret for JWT; Bunny token-auth key for media URLs.

    Media:
        - `BUNNY_CDN_URL` is the pull-zone base used for signed playback and
          thumbnail URLs; `BUNNY_SECURITY_KEY` is the token authentication key.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "MemberHub API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Logging ───────────────────────────────────────────────
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_JSON: bool = False
    # Rotating file sink is enabled when LOG_FILE is set
    LOG_FILE: Optional[str] = None
    LOG_ROTATION: str = "10 MB"

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    JWT_ISSUER: Optional[str] = None
    JWT_AUDIENCE: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, ge=5, le=24 * 60)
    AUTH_FAIL_OPEN: bool = False

    # Admin accounts by email (CSV), in addition to users with the admin role
    ADMIN_EMAILS: Optional[str] = None

    # ── Password reset ────────────────────────────────────────
    PASSWORD_RESET_TTL_SECONDS: int = Field(3600, ge=300, le=24 * 60 * 60)
    PASSWORD_RESET_URL: str = "http://localhost:3000/auth/reset-password"

    # ── Redis ─────────────────────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = Field(...)
    POSTGRES_DB: str = "memberhub"

    # ── CORS ─────────────────────────────────────────────────
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = Field(
        default_factory=lambda: ["http://localhost:3000"]
    )
    FRONTEND_ORIGINS: Optional[str] = None  # CSV

    # ── Bunny.net Stream (optional in dev) ────────────────────
    BUNNY_API_KEY: Optional[SecretStr] = None
    BUNNY_LIBRARY_ID: Optional[str] = None
    BUNNY_CDN_URL: Optional[str] = None  # e.g. vz-abc123.b-cdn.net or https://vz-abc123.b-cdn.net
    BUNNY_SECURITY_KEY: Optional[SecretStr] = None
    BUNNY_API_BASE_URL: str = "https://video.bunnycdn.com/library"
    BUNNY_EMBED_BASE_URL: str = "https://iframe.mediadelivery.net/embed"
    BUNNY_HTTP_TIMEOUT_SECONDS: float = Field(30.0, gt=0, le=600)
    BUNNY_UPLOAD_TIMEOUT_SECONDS: float = Field(600.0, gt=0, le=3600)

    # ── Media gating ──────────────────────────────────────────
    MEDIA_URL_TTL_SECONDS: int = Field(3600, ge=1, le=7 * 24 * 60 * 60)
    GATE_LOCKED_THUMBNAILS: bool = False
    MAX_UPLOAD_BYTES: int = Field(2 * 1024 * 1024 * 1024, ge=1)

    # ── Storefront (demo checkout) ────────────────────────────
    STORE_CURRENCY: str = "USD"
    SHIPPING_STANDARD: Decimal = Decimal("4.99")
    SHIPPING_EXPRESS: Decimal = Decimal("14.99")
    SHIPPING_OVERNIGHT: Decimal = Decimal("29.99")

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _normalize_frontend_csv(cls, v):
        return None if v is None else ",".join(_split_csv(str(v)))

    @field_validator("BUNNY_CDN_URL", mode="before")
    @classmethod
    def _normalize_cdn_url(cls, v: str | None) -> str | None:
        """
        Accepts either 'vz-1.b-cdn.net' or 'https://vz-1.b-cdn.net' and
        normalizes to 'https://vz-1.b-cdn.net' (no trailing slash).
        """
        s = (v or "").strip()
        if not s:
            return None
        return _normalize_url_like(s)

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() == "development"

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
    def frontend_origins_list(self) -> List[str]:
        """FRONTEND_ORIGINS (CSV) takes priority over BACKEND_CORS_ORIGINS."""
        if self.FRONTEND_ORIGINS:
            return _split_csv(self.FRONTEND_ORIGINS)
        return [str(u).rstrip("/") for u in (self.BACKEND_CORS_ORIGINS or [])]

    @property
    def admin_emails(self) -> set[str]:
        return {e.lower() for e in _split_csv(self.ADMIN_EMAILS)}

    @property
    def bunny_cdn_base_url(self) -> str:
        """Pull-zone base URL or '' when unset."""
        return (self.BUNNY_CDN_URL or "").rstrip("/")

    @property
    def bunny_security_key(self) -> str:
        """Token-auth key as plain text or '' when unset."""
        return self.BUNNY_SECURITY_KEY.get_secret_value() if self.BUNNY_SECURITY_KEY else ""

    @property
    def bunny_api_key(self) -> str:
        return self.BUNNY_API_KEY.get_secret_value() if self.BUNNY_API_KEY else ""

    @property
    def shipping_rates(self) -> dict[str, Decimal]:
        return {
            "standard": self.SHIPPING_STANDARD,
            "express": self.SHIPPING_EXPRESS,
            "overnight": self.SHIPPING_OVERNIGHT,
        }


# Singleton instance
settings = Settings()
