"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import List
import warnings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Battery Trade Back-Office API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./battery_ledger.db"

    # Localization
    DEFAULT_LANGUAGE: str = "ar"
    SUPPORTED_LANGUAGES: str = "ar,en"

    # Ledger
    DEFERRED_PAYMENT_METHODS: str = "check,credit,اجل"
    FOLLOW_UP_DAYS: int = 30

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def deferred_payment_methods(self) -> frozenset:
        """Payment methods whose amount accrues to the counterparty balance"""
        return frozenset(
            method.strip() for method in self.DEFERRED_PAYMENT_METHODS.split(",") if method.strip()
        )

    @property
    def supported_languages(self) -> List[str]:
        return [lang.strip() for lang in self.SUPPORTED_LANGUAGES.split(",") if lang.strip()]

    @property
    def database_url(self) -> str:
        """Get properly formatted database URL"""
        url = self.DATABASE_URL
        if url.startswith("file:"):
            path = url[5:]  # Remove 'file:' prefix
            return f"sqlite:///{path}"
        return url

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT.lower() == "production"

    def validate_settings(self):
        """Validate settings and warn about unsafe or inconsistent values"""
        if self.DEFAULT_LANGUAGE not in self.supported_languages:
            raise ValueError(
                f"DEFAULT_LANGUAGE '{self.DEFAULT_LANGUAGE}' is not one of "
                f"SUPPORTED_LANGUAGES ({self.SUPPORTED_LANGUAGES})"
            )

        if not self.deferred_payment_methods:
            warnings.warn(
                "WARNING: DEFERRED_PAYMENT_METHODS is empty. "
                "No transaction will accrue to customer or supplier balances.",
                UserWarning
            )

        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError("DEFAULT_PAGE_SIZE cannot exceed MAX_PAGE_SIZE")

        if self.is_production and self.DEBUG:
            raise ValueError(
                "CRITICAL: DEBUG mode is enabled in production! "
                "Set DEBUG=False for production environment."
            )

        if self.is_production and self.database_url.startswith("sqlite"):
            warnings.warn(
                "WARNING: Using SQLite in production. "
                "Set DATABASE_URL to a server database.",
                UserWarning
            )

        return True

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

# Validate on import (but don't crash in development)
try:
    settings.validate_settings()
except ValueError as e:
    if settings.is_production:
        raise
    else:
        warnings.warn(str(e), UserWarning)
