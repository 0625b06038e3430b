"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    # Untappd
    untappd_base_url: str = "https://untappd.com"
    untappd_search_url: str = "https://untappd.com/search"
    untappd_api_base_url: str = "https://api.untappd.com/v4"

    # Optional API credentials, stored on startup when none are saved yet
    untappd_client_id: str = ""
    untappd_client_secret: str = ""

    # Storage
    redis_url: str = "redis://localhost:6379"
    fallback_store_size: int = 1024

    # Cache TTL (seconds)
    cache_ttl_seconds: int = 604800             # 7 days

    # Outbound request budget, shared by every caller
    rate_limit_requests: int = 10
    rate_limit_window_seconds: float = 60.0

    # HTTP
    http_timeout_seconds: float = 15.0
    scrape_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def has_seed_credentials(self) -> bool:
        return bool(self.untappd_client_id and self.untappd_client_secret)

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]


settings = Settings()
