from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    host: str = Field(default="0.0.0.0", alias="HOST")
    api_port: int = Field(default=8080, alias="API_PORT")
    metrics_port: int = Field(default=8081, alias="METRICS_PORT")
    metrics_namespace: str = Field(default="prometheus_app", alias="METRICS_NAMESPACE")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    enable_delay: bool = Field(default=True, alias="ENABLE_DELAY")
    list_delay_ms: int = Field(default=200, ge=0, alias="LIST_DELAY_MS")
    upgrade_delay_ms: int = Field(default=1000, ge=0, alias="UPGRADE_DELAY_MS")
    delay_seed: int | None = Field(default=None, alias="DELAY_SEED")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
