from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    DATABASE_URL: str

    REDIS_URL: str

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    RATE_LIMIT: int = 100
    RATE_LIMIT_WINDOW: int = 600  # 10 minutes

    IDEMPOTENCY_TTL: int = 300  # 5 minutes

    WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT: int = 10
    WEBHOOK_RETRIES: int = 3

    CELERY_BROKER_URL: str
    CELERY_BACKEND: str

    BRAND_NAME: str = "Studio Web Works"
    BRAND_TAGLINE: str = "Websites built to convert"
    BRAND_EMAIL: str = "hello@studiowebworks.com"
    BRAND_PHONE: str = ""
    BRAND_WEBSITE: str = "studiowebworks.com"
    PROPOSAL_VALID_DAYS: int = 30

    API_TITLE: str = "Website Quote Estimator"
    API_DESCRIPTION: str = "Instant website build estimates, lead capture and proposal PDFs"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False


settings = Settings()
