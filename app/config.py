from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Upstream endpoints
    lifi_base_url: str = Field(default="https://li.quest", description="LI.FI API base URL")
    bungee_base_url: str = Field(
        default="https://public-backend.bungee.exchange",
        description="Bungee public backend base URL",
    )
    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="Coingecko API base URL",
    )

    # External API Keys
    lifi_api_key: str = Field(default="", description="LI.FI API key")
    bungee_api_key: str = Field(default="", description="Bungee API key")
    coingecko_api_key: str = Field(default="", description="Coingecko API key")

    # Cache Settings
    price_cache_ttl_seconds: int = Field(default=300, ge=1, description="Unit price cache TTL in seconds")
    token_list_ttl_seconds: int = Field(default=300, ge=1, description="Token/chain list cache TTL in seconds")
    max_cache_size: int = Field(default=1000, description="Maximum token list cache size")

    # Rate Limiting
    max_concurrent_requests: int = Field(default=6, ge=1, description="Max concurrent outbound quote requests")
    request_timeout_seconds: float = Field(default=12.0, gt=0, description="Per-call upstream timeout")

    # Quote parameters
    quote_placeholder_address: str = Field(
        default="0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
        description="Account address sent to quote APIs that require one; never a user wallet",
    )
    bungee_slippage_percent: str = Field(default="1", description="Slippage tolerance sent to Bungee quotes")
    baseline_checkpoints_usd: List[float] = Field(
        default_factory=lambda: [1000.0, 7000.0, 30000.0, 120000.0],
        description="USD notionals always included in an aggregation request",
    )


# Global settings instance
settings = Settings()
