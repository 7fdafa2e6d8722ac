"""Runtime settings, read from the environment (``RECIPES_*``) or ``.env``."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPES_", env_file=".env", extra="ignore")

    app_name: str = "Recipe Catalog"
    version: str = "0.1.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Storage
    data_file: Path = Path("data/recipes.json")

    # Listing
    default_page_size: int = Field(default=10, ge=1)

    # Development aid: sleep before answering recipe routes
    simulated_latency_ms: int = Field(default=0, ge=0)

    cors_origins: Annotated[List[str], NoDecode] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
