from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./ticket_ai.db"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    completion_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    cors_allow_origins: str = "*"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
