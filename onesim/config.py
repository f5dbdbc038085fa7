"""
OneSim Backend: Application Configuration
=========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the application factory; handed to process-scoped
       services when they are constructed in the lifespan.
When:  Loaded once at module import time; tests build their own instance.

Environment surface:
    DB_HOST, DB_USER, DB_PASSWORD, DB_NAME, DB_PORT  -> MySQL connection
    PORT                                             -> listen port
    DATABASE_URL                                     -> optional full URL override
    COMPARISON_SERVICE_URL, RELAY_TIMEOUT_SECONDS    -> file relay target
    BROADCAST_SEND_TIMEOUT_SECONDS                   -> per-client real-time send bound
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments
    override the database credentials and CORS origins.
    """

    # ── Database ──────────────────────────────────────────────────────────
    db_host: str = Field(default="localhost")
    db_user: str = Field(default="root")
    db_password: str = Field(default="")
    db_name: str = Field(default="onesimulation")
    db_port: int = Field(default=3306, ge=1, le=65535)

    # Full SQLAlchemy URL; when set it wins over the DB_* parts.
    # Tests point this at sqlite+aiosqlite.
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # Fixed-size pool: no overflow connections are ever opened.
    db_pool_size: int = Field(default=10, ge=1, le=100)

    # Seconds a request waits for a pooled connection before failing
    db_pool_timeout: int = Field(default=30, ge=1, le=600)

    db_pool_pre_ping: bool = Field(default=True)

    # Runs metadata.create_all at startup (local development and tests only)
    db_create_tables: bool = Field(default=False)

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL for the credential store."""
        if self.database_url_override:
            return self.database_url_override
        return URL.create(
            "mysql+aiomysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)

    # ── Password Hashing ──────────────────────────────────────────────────
    # bcrypt work factor; matches hashes already stored by the legacy server
    bcrypt_rounds: int = Field(default=10, ge=4, le=16)

    # ── Real-time ─────────────────────────────────────────────────────────
    # Per-client bound on one broadcast send; slower clients are dropped
    broadcast_send_timeout_seconds: float = Field(default=5.0, gt=0, le=60)

    # ── File Relay ────────────────────────────────────────────────────────
    comparison_service_url: str = Field(default="http://localhost:8000/compare")
    relay_timeout_seconds: float = Field(default=60.0, gt=0, le=600)

    # Staging directory for uploads while they are being relayed
    upload_dir: str = Field(default="uploads")

    # ── Login Behaviour ───────────────────────────────────────────────────
    # False: unknown users get the same 401 as wrong passwords.
    # True: legacy 404 "User not found." for clients that rely on it.
    login_reveal_unknown_user: bool = Field(default=False)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(
        default=(
            "http://localhost:3000,"
            "https://onesimulation-frontend.s3.ap-south-1.amazonaws.com"
        )
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
        "extra": "ignore",
    }


# Singleton instance used by the module-level app in main.py
settings = Settings()
