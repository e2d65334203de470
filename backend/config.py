"""
Playback configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os

from engine.kernel.errors import StoreUnavailable


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings from environment variables."""

    # Document store
    STORE_BACKEND: str = os.environ.get("STORE_BACKEND", "memory")  # memory | postgres
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # R2 / S3 Storage (uploads)
    R2_ENDPOINT: str = os.environ.get("R2_ENDPOINT", "")
    R2_ACCESS_KEY: str = os.environ.get("R2_ACCESS_KEY", "")
    R2_SECRET_KEY: str = os.environ.get("R2_SECRET_KEY", "")
    R2_UPLOADS_BUCKET: str = os.environ.get("R2_UPLOADS_BUCKET", "playback-uploads")
    R2_PUBLIC_URL: str = os.environ.get("R2_PUBLIC_URL", "https://uploads.playback.fm")
    MAX_UPLOAD_BYTES: int = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # Auth
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "24"))

    # Identity-provider tokens exchanged at POST /auth/session
    IDP_JWT_SECRET: str = os.environ.get("IDP_JWT_SECRET", "")

    # Demo identity, used when no session is present
    ALLOW_DEMO_IDENTITY: bool = _flag("ALLOW_DEMO_IDENTITY", "true")
    DEMO_PROFILE_ID: str = os.environ.get("DEMO_PROFILE_ID", "neon-echo")
    DEMO_DISPLAY_NAME: str = os.environ.get("DEMO_DISPLAY_NAME", "Neon Echo")

    # External QR code image service
    QR_SERVICE_URL: str = os.environ.get("QR_SERVICE_URL", "https://api.qrserver.com/v1/create-qr-code/")

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")

    @property
    def PUBLIC_URL(self) -> str:
        url = os.environ.get("PUBLIC_URL")
        if url:
            return url.rstrip("/")
        return "http://localhost:8000" if self.ENVIRONMENT == "development" else "https://playback.fm"

    @property
    def idp_secret(self) -> str:
        return self.IDP_JWT_SECRET or self.JWT_SECRET

    def profile_url(self, public_id: str) -> str:
        return f"{self.PUBLIC_URL}/{public_id}"


# Singleton instance
settings = Settings()


def validate_settings(s: Settings | None = None) -> None:
    """
    Check the settings the app cannot start without.

    Raises:
        StoreUnavailable: unknown store backend, or postgres without DATABASE_URL
        RuntimeError: missing JWT secret outside development
    """
    s = s or settings
    if s.STORE_BACKEND not in ("memory", "postgres"):
        raise StoreUnavailable(f"Unknown STORE_BACKEND {s.STORE_BACKEND!r}")
    if s.STORE_BACKEND == "postgres" and not s.DATABASE_URL:
        raise StoreUnavailable("DATABASE_URL environment variable is required for the postgres store")
    if not s.JWT_SECRET and s.ENVIRONMENT != "development":
        raise RuntimeError("JWT_SECRET environment variable is required")
