from pydantic_settings import BaseSettings
from typing import List, Optional
from decimal import Decimal
from functools import lru_cache

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./adventureconnect.db"
    DATABASE_ECHO: bool = False

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Marketplace rules
    DEFAULT_COMMISSION_RATE: Decimal = Decimal("15.00")
    CANCELLATION_WINDOW_HOURS: int = 48
    BOOKING_NUMBER_PREFIX: str = "AC"
    BOOKING_NUMBER_MAX_ATTEMPTS: int = 5
    PROVIDER_AUTO_APPROVE: bool = False

    # Email
    EMAIL_HOST: Optional[str] = None
    EMAIL_PORT: int = 587
    EMAIL_USER: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "noreply@adventureconnect.com"
    EMAIL_USE_TLS: bool = True
    NOTIFICATION_MAX_ATTEMPTS: int = 3
    NOTIFICATION_RETRY_DELAY_SECONDS: float = 1.0

    # Application
    PROJECT_NAME: str = "AdventureConnect"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

@lru_cache
def get_settings() -> Settings:
    """Settings loaded from the environment, read once per process"""
    return Settings()
