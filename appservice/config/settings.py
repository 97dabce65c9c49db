"""
Application Settings.

All configuration comes from .env / environment variables.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # --- App ---
    env: str = "development"
    debug: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    # --- Database ---
    database_url: str = "sqlite:///application_service.db"

    # --- Remote services ---
    user_service_url: str = "http://user-service:8080"
    product_service_url: str = "http://product-service:8080"
    tag_service_url: str = "http://tag-service:8080"
    remote_timeout_seconds: float = 5.0

    # --- Pagination ---
    default_page_size: int = 20
    max_page_size: int = 50

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Settings singleton."""
    return Settings()
