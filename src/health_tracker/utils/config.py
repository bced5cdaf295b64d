"""Configuration management."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_STATIC_DIR = Path(__file__).parent.parent / "web" / "static"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Data storage
    data_dir: Path = Field(default=Path("data"))
    db_path: Optional[Path] = None  # DB_PATH overrides the file under data_dir
    storage_backend: Literal["duckdb", "tinydb"] = Field(default="duckdb")

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3001)
    static_dir: Path = Field(default=PACKAGE_STATIC_DIR)

    # Client
    api_url: Optional[str] = None
    request_timeout: float = Field(default=30.0)

    log_level: str = Field(default="INFO")

    @property
    def database_file(self) -> Path:
        if self.db_path is not None:
            return self.db_path
        suffix = "duckdb" if self.storage_backend == "duckdb" else "json"
        return self.data_dir / f"health_tracker.{suffix}"

    @property
    def resolved_api_url(self) -> str:
        if self.api_url:
            return self.api_url
        return f"http://{self.host}:{self.port}/api"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
