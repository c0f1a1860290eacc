"""
Configuration management for the bakery IVR webhook service.

Loads environment variables and provides a strongly-typed configuration object.
Validates required keys at startup.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
import structlog

load_dotenv()

logger = structlog.get_logger(__name__)

DEFAULT_API_BASE_URL = "https://www.freeclimb.com/apiserver"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


@dataclass(frozen=True)
class Config:
    """Strongly-typed configuration object."""

    # Server
    host_url: str
    port: int = 3000
    log_level: str = "INFO"

    # FreeClimb
    account_id: str = ""
    api_key: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout_seconds: float = 10.0

    def url_for(self, path: str) -> str:
        """Absolute webhook URL for a route path, e.g. ``/mainMenu``."""
        return f"{self.host_url}{path}"

    @property
    def messages_url(self) -> str:
        """FreeClimb endpoint for outbound SMS on this account."""
        return f"{self.api_base_url}/Accounts/{self.account_id}/Messages"

    def validate(self) -> None:
        """Validate that all required configuration is present."""
        missing = []

        if not self.account_id:
            missing.append("ACCOUNT_ID")
        if not self.api_key:
            missing.append("API_KEY")
        if not self.host_url:
            missing.append("HOST_URL")

        if missing:
            raise ConfigError(
                f"Missing required environment variables: {', '.join(missing)}\n"
                "Please check your .env file."
            )

    def log_config(self) -> None:
        """Log configuration (without secrets)."""
        logger.info(
            "Configuration loaded",
            host_url=self.host_url,
            port=self.port,
            log_level=self.log_level,
            api_base_url=self.api_base_url,
            api_timeout_seconds=self.api_timeout_seconds,
            account_id_prefix=self.account_id[:6] + "..." if self.account_id else "NOT SET",
            api_key_set=bool(self.api_key),
        )


def _get_int(key: str, default: int) -> int:
    """Get an integer from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    """Get a float from environment variable."""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get the application configuration.

    Uses lru_cache to ensure we only load config once.
    """
    return Config(
        # Server
        host_url=os.getenv("HOST_URL", "").strip().rstrip("/"),
        port=_get_int("PORT", 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),

        # FreeClimb
        account_id=os.getenv("ACCOUNT_ID", ""),
        api_key=os.getenv("API_KEY", ""),
        api_base_url=os.getenv("FREECLIMB_API_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        api_timeout_seconds=_get_float("FREECLIMB_TIMEOUT_SECONDS", 10.0),
    )


def init_config() -> Config:
    """
    Initialize and validate configuration.

    Call this at application startup to fail fast if config is invalid.
    """
    config = get_config()
    config.validate()
    config.log_config()
    return config
