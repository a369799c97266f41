"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Tracked symbols (broker tickers)
    symbols: list[str] = [
        "GOLD", "SILVER", "EURUSD", "GBPUSD", "USDJPY", "AUDUSD", "USDCAD",
        "NZDUSD", "USDCHF", "EURJPY",
        "BTCUSD", "ETHUSD", "LTCUSD", "XRPUSD", "BCHUSD",
        "US500Cash", "US30Cash", "US100Cash", "US2000Cash", "UK100Cash",
        "GER40Cash", "JP225Cash", "HK50Cash", "ChinaHCash",
        "Apple", "MICROSOFT", "Amazon", "Google", "Tesla", "Nvidia", "JPMorgan",
        "OILCash", "NGASCash", "XPTUSD", "XPDUSD",
    ]
    timeframes: list[str] = ["5m", "15m"]

    # Bar buffers
    max_bars: int = 500

    # Evaluation loop
    evaluation_interval_seconds: float = 60.0
    default_balance: float = 10000.0
    default_fear_index: float = 20.0

    # Engine parameters (YAML, optional)
    engine_config_path: str = "engine.yaml"

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
