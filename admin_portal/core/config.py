from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Dispatch Admin Portal"

    ADMIN_API_BASE_URL: str = "https://localhost:5007"
    AUTH_SERVER_BASE_URL: str = "https://localhost:5001"
    # Server-side only, never sent to the browser
    ADMIN_API_KEY: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = 30.0

    TOKEN_REFRESH_LEAD_MINUTES: int = 5
    TOKEN_REFRESH_PERIOD_MINUTES: int = 55

    QUOTE_LIST_TAKE: int = 100
    SESSION_COOKIE_NAME: str = "portal_session"

    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
