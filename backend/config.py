"""
Pagekit configuration: all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Postgres todo list (also the alembic target)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # Neon todo list (same schema as DATABASE_URL, separate database)
    NEON_DSN: str = os.environ.get("NEON_DSN", "")

    # Supabase todo list
    SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.environ.get("SUPABASE_KEY", "")

    # Firebase Realtime Database todo list
    FIREBASE_RTDB_URL: str = os.environ.get("FIREBASE_RTDB_URL", "")
    FIREBASE_AUTH_TOKEN: str = os.environ.get("FIREBASE_AUTH_TOKEN", "")

    # Auth
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "24"))

    # Cells
    CELLS_MAX_DEPTH: int = int(os.environ.get("CELLS_MAX_DEPTH", "256"))

    # Seven GUIs sessions idle longer than this are dropped
    SESSION_TIMEOUT_SECONDS: int = int(os.environ.get("SESSION_TIMEOUT_SECONDS", "1800"))
    # Most seven GUIs sessions kept in memory at once
    MAX_SESSIONS: int = int(os.environ.get("MAX_SESSIONS", "10000"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def configured_backends(self) -> set[str]:
        """Todo backends whose settings are present."""
        backends = set()
        if self.DATABASE_URL:
            backends.add("postgres")
        if self.NEON_DSN:
            backends.add("neon")
        if self.SUPABASE_URL and self.SUPABASE_KEY:
            backends.add("supabase")
        if self.FIREBASE_RTDB_URL:
            backends.add("firebase")
        return backends


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if not _testing:
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET environment variable is required")
    if settings.CELLS_MAX_DEPTH < 1:
        raise RuntimeError("CELLS_MAX_DEPTH must be at least 1")
