from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./toolshare.db"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_DAYS: int = 7

    # slowapi limit string, e.g. "100/minute"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"

    LOG_LEVEL: str = "INFO"

    SEED_CATEGORIES_ON_STARTUP: bool = True

    # Minimum verification tier for listing a tool / requesting a rental
    MIN_TIER_TO_LIST_TOOLS: str = "UNVERIFIED"
    MIN_TIER_TO_RENT: str = "UNVERIFIED"

    # Longest rental a single booking may cover, in calendar days
    MAX_BOOKING_DAYS: int = 365

    # Comma-separated
    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
