"""
Application configuration management
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Booking Payment Reconciler"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Default to production-safe
    API_PREFIX: str = "/api/v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str  # Must be provided via environment

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50

    # JWT (tokens are issued by the admin console backend)
    JWT_SECRET_KEY: str  # Must be provided via environment
    JWT_ALGORITHM: str = "HS256"

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    # Payment gateway
    PAYMENT_PROVIDER: str = "razorpay"
    PAYMENT_SETTINGS_CATEGORY: str = "payment"
    PAYMENT_SETTINGS_SOURCE: str = "database"  # "database" or "env"
    RAZORPAY_KEY_SECRET: str = ""  # Only read when PAYMENT_SETTINGS_SOURCE=env

    @field_validator('PAYMENT_SETTINGS_SOURCE')
    @classmethod
    def validate_settings_source(cls, v: str) -> str:
        if v not in ("database", "env"):
            raise ValueError("PAYMENT_SETTINGS_SOURCE must be 'database' or 'env'")
        return v

    # Webhooks
    WEBHOOK_SIGNATURE_HEADER: str = "X-Razorpay-Signature"
    WEBHOOK_LOCK_ENABLED: bool = True
    WEBHOOK_LOCK_TTL_SECONDS: int = 30
    WEBHOOK_LOCK_WAIT_SECONDS: float = 5.0
    WEBHOOK_LOG_WINDOW_HOURS: int = 24
    WEBHOOK_LOG_LIMIT: int = 50

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080", "http://localhost:5173"]

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
