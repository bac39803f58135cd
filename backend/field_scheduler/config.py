"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATA_DIR: str = "./data"
    TIME_ZONE: str = "America/Los_Angeles"  # IANA tz for "today" and year rollover
    ADVANCE_RESERVATION_DAYS: int = 7
    FIRST_USER_IS_ADMIN: bool = True
    CONTINUE_ON_ERROR: bool = True  # False holds the change lock after a failed commit
    DISABLE_WRITES: bool = False
    USER_DISABLE_AFTER_DAYS: int = 548
    USER_EXPIRE_AFTER_DAYS: int = 730
    YEAR_CHECK_INTERVAL_SECONDS: float = 1.0
    SHUTDOWN_GRACE_SECONDS: float = 1.0
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
