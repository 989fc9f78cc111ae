from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "IoT Hierarchy API"

    # Storage: "json" keeps the whole hierarchy in one document file,
    # "sqlite" keeps one row per collection
    storage_backend: str = Field(default="json")
    data_path: str = Field(default="data/database.json")
    sqlite_path: str = Field(default="hierarchy.db")

    # Logging
    log_level: str = "INFO"
    log_file: str = "iot_hierarchy.log"
    log_max_bytes: int = 2_000_000
    log_backup_count: int = 5

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]


settings = Settings()
