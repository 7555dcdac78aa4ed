"""Settings for the area admin service.

Values come from environment variables or a .env file; every field can be
overridden by an upper- or lower-case variable of the same name.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("uvicorn")


class Settings(BaseSettings):
    """Service, area backend, cache and table settings."""

    # ENVIRONMENT CONFIG
    environment: str = "dev"
    testing: bool = bool(0)

    # API CONFIG
    project_name: str = "Area Admin"
    api_v1_str: str = "/api/v1"
    backend_cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # AREA BACKEND CONFIG
    area_api_base_url: str = "http://127.0.0.1:8000"
    area_api_path: str = "/master/api/area/"  # Trailing slash is part of the backend route
    request_timeout: float = 10.0

    # CSRF CONFIG
    csrf_cookie_name: str = "csrftoken"
    csrf_header_name: str = "X-CSRFToken"

    # QUERY CACHE CONFIG
    query_stale_time: float = 30.0
    query_retry: int = 1
    query_max_entries: int = 1000

    # TABLE CONFIG
    default_page_size: int = 10
    page_size_options: List[int] = [10, 20, 50, 100]
    default_sort_field: str = "area_id"
    default_sort_order: str = "ascend"

    model_config = SettingsConfigDict(
        env_file=["../.env", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def area_api_url(self) -> str:
        """Full URL of the area resource, always ending with a slash."""
        path = self.area_api_path
        if not path.endswith("/"):
            path = f"{path}/"
        return f"{self.area_api_base_url.rstrip('/')}/{path.lstrip('/')}"


@lru_cache()
def get_settings() -> Settings:
    """Get the settings for the application."""
    logger.info("Loading config settings from the environment...")

    settings = Settings()

    logger.info(f"Area backend resource: {settings.area_api_url}")

    return settings
