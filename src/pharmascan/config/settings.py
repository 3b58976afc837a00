"""Pydantic settings models for configuration management."""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import ConfigError


class ScannerSettings(BaseModel):
    """Browser and scan timing configuration."""

    headless: bool = True
    default_step_timeout_ms: int = 8000
    navigate_timeout_ms: int = 30000
    search_page_timeout_ms: int = 15000
    homepage_timeout_ms: int = 10000
    homepage_warmup: bool = True
    warmup_delay_min_seconds: float = 2.0
    warmup_delay_max_seconds: float = 4.0
    settle_delay_seconds: float = 1.0
    typing_delay_ms: int = 50
    max_concurrent_scans: int = 3
    scan_timeout_seconds: Optional[float] = None
    locale: str = "sk-SK"
    timezone_id: str = "Europe/Bratislava"
    accept_language: str = "sk-SK,sk;q=0.9,en-US;q=0.8,en;q=0.7"
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )

    @field_validator(
        "default_step_timeout_ms",
        "navigate_timeout_ms",
        "search_page_timeout_ms",
        "homepage_timeout_ms",
    )
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("max_concurrent_scans")
    @classmethod
    def validate_concurrency(cls, v):
        if v <= 0:
            raise ValueError("Max concurrent scans must be positive")
        return v


class SinkSettings(BaseModel):
    """Availability ingestion endpoint configuration."""

    backend_api_url: str = "http://localhost:5000"
    availability_path: str = "/api/pharmacy/availability"
    timeout_seconds: float = 30.0
    journal_path: Optional[str] = None

    @field_validator("backend_api_url")
    @classmethod
    def validate_url(cls, v):
        if not v:
            raise ValueError("Backend API URL cannot be empty")
        return v.rstrip("/")


class StateSettings(BaseModel):
    """Change-detection state persistence."""

    hash_store_path: str = "state/last_hashes.json"
    hash_type: str = "sha256"

    @field_validator("hash_type")
    @classmethod
    def validate_hash_type(cls, v):
        if v.lower() not in ("sha256", "blake3"):
            raise ValueError("Hash type must be sha256 or blake3")
        return v.lower()


class WorkerSettings(BaseModel):
    """Periodic scan worker configuration."""

    config_dir: str = "config/pharmacies"
    products: list[str] = Field(default_factory=list)
    target_ids: list[str] = Field(default_factory=list)
    scan_interval_seconds: int = 900
    run_once: bool = False

    @field_validator("scan_interval_seconds")
    @classmethod
    def validate_interval(cls, v):
        if v <= 0:
            raise ValueError("Scan interval must be positive")
        return v


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False
    api_host: str = "127.0.0.1"
    api_port: int = 8080

    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    sink: SinkSettings = Field(default_factory=SinkSettings)
    state: StateSettings = Field(default_factory=StateSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


@lru_cache
def get_settings() -> AppSettings:
    """Get the application settings instance."""
    try:
        return AppSettings()
    except Exception as e:
        raise ConfigError(f"Failed to load settings: {str(e)}") from e


def reload_settings() -> AppSettings:
    """Force reload of settings (useful for testing)."""
    get_settings.cache_clear()
    return get_settings()
