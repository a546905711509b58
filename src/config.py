from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from the environment / .env file."""

    APP_NAME: str = "SiguraDocs"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    SEED_DEMO_DATA: bool = True

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Database
    DATABASE_URL: str = "postgresql://postgres:root@db:5432/siguradocs"
    DB_ECHO: bool = False
    DB_POOL_PRE_PING: bool = True

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # Email (best-effort delivery)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAILS_FROM_EMAIL: Optional[str] = None
    SMTP_TIMEOUT_SECONDS: int = 30
    FRONTEND_URL: str = "http://localhost:5173"

    # Short-lived verification codes (password reset)
    CODE_TTL_MINUTES: int = 15
    CODE_SWEEP_INTERVAL_MINUTES: int = 5

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def email_configured(self) -> bool:
        return bool(self.SMTP_USER and self.SMTP_PASSWORD)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
