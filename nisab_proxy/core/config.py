from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, CACHE_DIR,
    CACHE_TTL_SECONDS, UPSTREAM_API_KEY, HTTP_TIMEOUT_SECONDS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Nisab Cache Proxy"
    debug: bool = False
    version: str = "0.1.0"

    # Filesystem cache
    cache_dir: Path = Path("cache")
    cache_ttl_seconds: int = 21600  # 6 hours

    # Upstream pricing API (IslamicAPI zakat-nisab)
    upstream_base_url: AnyHttpUrl = "https://islamicapi.com/api/v1/zakat-nisab/"
    upstream_api_key: str = ""
    http_timeout_seconds: float = 10.0

    # Inbound CORS
    cors_allow_origins: List[str] = ["*"]

    def init_post_load(self) -> None:
        """Validate derived constraints that field types alone can't express."""
        if self.cache_ttl_seconds <= 0:
            raise ValueError(
                f"cache_ttl_seconds must be positive, got {self.cache_ttl_seconds}"
            )
        if self.http_timeout_seconds <= 0:
            raise ValueError(
                f"http_timeout_seconds must be positive, got {self.http_timeout_seconds}"
            )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
