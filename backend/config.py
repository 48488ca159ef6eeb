"""
Configuration management for the GigConnect backend.

Loads settings from .env via pydantic-settings.

Security notes:
    - validate_production_settings() enforces strict CORS in production
    - The Paystack webhook secret and Supabase JWT secret are mandatory in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    api_version: str = "v1"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:3000"

    # ── Relational store (Supabase Postgres) ────────────────────────
    database_url: str = "sqlite:///./data/gigconnect.db"
    database_echo: bool = False

    # ── Supabase Auth ───────────────────────────────────────────────
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"
    http_timeout_seconds: float = 10.0

    # ── MongoDB (chat, projects, file metadata) ─────────────────────
    mongo_uri: str = ""
    mongo_db_name: str = "gigconnect"
    message_ttl_days: int = 2 * 365
    activity_log_ttl_days: int = 365

    # ── Redis (job queues, shared rate limiting) ────────────────────
    redis_url: str = ""

    # ── Paystack ────────────────────────────────────────────────────
    paystack_secret_key: str = ""
    paystack_public_key: str = ""
    paystack_webhook_secret: str = ""
    paystack_account_number: str = "N/A"
    paystack_account_name: str = "GigConnect Escrow"
    payment_reference_prefix: str = "GIG"

    # ── Orders ──────────────────────────────────────────────────────
    min_order_amount_cents: int = 1000

    # ── Rate limiting ───────────────────────────────────────────────
    general_rate_limit: int = 100
    general_rate_window_seconds: int = 15 * 60
    auth_rate_limit: int = 5
    auth_rate_window_seconds: int = 15 * 60
    rate_limit_max_keys: int = 10_000

    # ── Background jobs ─────────────────────────────────────────────
    payout_concurrency: int = 5
    notification_concurrency: int = 10
    reconciliation_concurrency: int = 1
    cleanup_concurrency: int = 1
    webhook_event_retention_days: int = 90
    audit_log_retention_days: int = 365
    abandoned_order_days: int = 30
    stale_verification_hours: int = 48

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. Raises in production, warns elsewhere.
        """
        problems = []
        if "*" in self.cors_origins:
            problems.append("CORS_ORIGINS must not contain '*'")
        if not self.paystack_webhook_secret:
            problems.append("PAYSTACK_WEBHOOK_SECRET is not set (all webhooks will be rejected)")
        if not self.supabase_url:
            problems.append("SUPABASE_URL is not set (signup/login unavailable)")
        if not self.supabase_jwt_secret:
            problems.append("SUPABASE_JWT_SECRET is not set (tokens verified remotely)")

        if self.is_production:
            if problems:
                raise ValueError(
                    "Invalid production settings: " + "; ".join(problems)
                )
            logger.info("✅ Production settings validated")
        else:
            for p in problems:
                logger.warning(f"⚠️  {p}")


# Global settings instance
settings = Settings()
