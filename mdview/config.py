import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Image cache capacity is image_cache_fraction of the memory budget
    memory_budget_bytes: int = 512 * 1024 * 1024
    image_cache_fraction: float = 0.125

    image_connect_timeout_seconds: float = 10.0
    image_read_timeout_seconds: float = 10.0
    image_max_download_size: int = 20 * 1024 * 1024  # 20MB default

    document_timeout_seconds: float = 15.0
    document_max_download_size: int = 10 * 1024 * 1024  # 10MB default

    # Display size supplied by the renderer, drives the decode sample size
    target_width: int = 1080
    target_height: int = 1080

    user_agent: str = "Mozilla/5.0 (compatible; mdview/0.1)"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="MDVIEW_",
        env_file=[os.getenv("ENV_FILE", ""), ".env"],
        extra="ignore",
    )

    @property
    def image_cache_capacity(self) -> int:
        """Image cache capacity in bytes of decoded pixel data."""
        return int(self.memory_budget_bytes * self.image_cache_fraction)
