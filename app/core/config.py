from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    DATABASE_URL: str
    REDIS_URL: Optional[str] = None
    ALLOWED_HOSTS: List[str] = ["*"]
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Sessions
    SESSION_COOKIE_NAME: str = "daybook_session"
    SESSION_EXPIRE_DAYS: int = 7

    # Quota windows (day/month boundaries) are computed in this timezone
    TIMEZONE: str = "UTC"

    # Public links
    BASE_URL: str = "http://localhost:8000"
    PUBLIC_SHARE_EXPIRE_DAYS: Optional[int] = None

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRICE_ID_PRO: Optional[str] = None

    # Calendar integration (best effort)
    CALENDAR_WEBHOOK_URL: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = [".env"]
        case_sensitive = True


settings = Settings()
