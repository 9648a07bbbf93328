"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite+aiosqlite:///./club_events.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # SMTP transport
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False  # True for implicit TLS (port 465)
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_TIMEOUT_SECONDS: float = 30.0

    # Outgoing mail identity
    FROM_EMAIL: str = "noreply@jcesports.edu"
    FROM_NAME: str = "Juniata College Esports"
    ORGANIZATION_NAME: str = "Juniata College Esports"
    SUPPORT_EMAIL: str = "support@jcesports.edu"
    BASE_URL: str = "http://localhost:3000"

    # Delivery behaviour
    ENABLE_EMAIL: bool = True
    MAX_RECIPIENTS: int = 50
    EMAIL_BATCH_DELAY_SECONDS: float = 2.0
    DISPLAY_TIMEZONE: str = "America/New_York"

    class Config:
        env_file = ".env"


settings = Settings()
