from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:8000"
    ACCESS_TOKEN: str | None = None

    CONVERSATIONS_POLL_INTERVAL: float = 10.0
    MESSAGES_POLL_INTERVAL: float = 5.0

    HTTP_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"

    @property
    def api_base_url(self) -> str:
        return self.API_BASE_URL.rstrip("/")

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
