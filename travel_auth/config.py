"""
Travel accounts service settings.

Extends the base settings with account and rate-limit configuration.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Accounts-service-specific settings."""

    # ==========================================================================
    # Accounts
    # ==========================================================================
    CUSTOMERS_COLLECTION: str = "customers"

    # Refresh tokens kept per account (oldest evicted first)
    REFRESH_TOKEN_CAP: int = 5

    # ==========================================================================
    # Rate Limiting (per client IP, sliding window)
    # ==========================================================================
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_REGISTER: int = 10
    RATE_LIMIT_LOGIN: int = 20
    RATE_LIMIT_FEDERATED_LOGIN: int = 60

    # Only enable behind a proxy that overwrites X-Forwarded-For
    TRUST_PROXY_HEADERS: bool = False


# Global settings instance
settings = Settings()
