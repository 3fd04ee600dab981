import os
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "3D Model Generation Gateway"
    LOG_LEVEL: str = "INFO"
    ENABLE_TRACING: bool = False

    # HTTP Server
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    CORS_ORIGINS: List[str] = ["*"]
    MAX_BODY_BYTES: int = 50 * 1024 * 1024  # base64 sketches can be large

    # ModelsLab
    MODELSLAB_API_KEY: Optional[str] = Field(default=None, validation_alias="MODELSLAB_API_KEY")
    MODELSLAB_BASE_URL: str = "https://modelslab.com/api/v6"
    MODELSLAB_TIMEOUT_SECONDS: float = 60.0  # per outbound call

    # Polling (interval x attempts is the ceiling for one job)
    TEXT_POLL_INTERVAL_SECONDS: float = 6.0
    TEXT_POLL_MAX_ATTEMPTS: int = Field(default=60, gt=0)
    IMAGE_POLL_INTERVAL_SECONDS: float = 8.0
    IMAGE_POLL_MAX_ATTEMPTS: int = Field(default=60, gt=0)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class LocalSettings(Settings):
    ENV: str = "local"


class ProductionSettings(Settings):
    ENV: str = "production"
    LOG_LEVEL: str = "WARNING"


# Factory to choose the right config
def get_settings() -> Settings:
    env = os.getenv("ENV", "local")
    if env == "production":
        return ProductionSettings()  # type: ignore
    return LocalSettings()


settings = get_settings()
