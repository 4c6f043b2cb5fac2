"""
Base settings class for environment configuration.

Uses Pydantic Settings for automatic environment variable loading.
Extend this class for application-specific settings.

Example:
    from common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        CUSTOMERS_COLLECTION: str = "customers"

    settings = Settings()
    settings.validate_required()
"""

import json
from typing import Optional, Dict, Any
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    """
    Base settings class with common configuration options.

    Automatically loads values from environment variables.
    """

    # ==========================================================================
    # Database Settings
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "hotelDB"

    # ==========================================================================
    # Authentication Settings
    # ==========================================================================
    # No defaults: startup fails unless both are configured
    JWT_SECRET: Optional[str] = None
    REFRESH_TOKEN_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    BCRYPT_ROUNDS: int = 12

    # Firebase Settings (federated login is disabled when neither is set)
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_VERIFY_TIMEOUT_SECONDS: float = 5.0

    # ==========================================================================
    # Server Settings
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # CORS Settings
    CORS_ORIGINS: str = "*"  # Comma-separated origins or "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    # ==========================================================================
    # Pydantic Settings Configuration
    # ==========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",  # Allow app-specific settings
        case_sensitive=True,
    )

    def get_cors_origins(self) -> list:
        """Parse CORS_ORIGINS into a list."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    def federation_enabled(self) -> bool:
        """Check if Firebase credentials are configured."""
        return bool(self.FIREBASE_CREDENTIALS_PATH or self.FIREBASE_CREDENTIALS_JSON)

    def get_firebase_credentials_dict(self) -> Optional[Dict[str, Any]]:
        """Parse FIREBASE_CREDENTIALS_JSON, if set."""
        if not self.FIREBASE_CREDENTIALS_JSON:
            return None
        return json.loads(self.FIREBASE_CREDENTIALS_JSON)

    def validate_required(self) -> None:
        """
        Validate that required settings are configured.

        Raises:
            ValueError: If required settings are missing
        """
        errors = []

        if not self.JWT_SECRET:
            errors.append("JWT_SECRET is required")

        if not self.REFRESH_TOKEN_SECRET:
            errors.append("REFRESH_TOKEN_SECRET is required")

        if self.JWT_SECRET and self.JWT_SECRET == self.REFRESH_TOKEN_SECRET:
            errors.append("REFRESH_TOKEN_SECRET must differ from JWT_SECRET")

        if self.FIREBASE_CREDENTIALS_JSON:
            try:
                self.get_firebase_credentials_dict()
            except ValueError:
                errors.append("FIREBASE_CREDENTIALS_JSON is not valid JSON")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))
