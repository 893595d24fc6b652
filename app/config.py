from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    service_name: str = Field(default="mock-api-service", alias="SERVICE_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    loki_enabled: bool = Field(default=True, alias="LOKI_ENABLED")
    loki_url: str = Field(default="http://loki:3100", alias="LOKI_URL")
    loki_batch_interval: float = Field(default=5.0, alias="LOKI_BATCH_INTERVAL")
    loki_max_queue: int = Field(default=10_000, alias="LOKI_MAX_QUEUE")
    loki_timeout: float = Field(default=5.0, alias="LOKI_TIMEOUT")

    @property
    def loki_push_url(self) -> str:
        return self.loki_url.rstrip("/") + "/loki/api/v1/push"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
