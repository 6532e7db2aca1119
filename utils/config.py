"""Configuration management utilities for the explorer.

Provides reusable pieces for:
- Loading and saving configuration files
- Environment-driven settings for the transport and the explore service
- Constants and known values shared by the encoder and the catalog
"""

from pathlib import Path
from typing import Dict, Optional, Any
import json
import os


# ── Filter vocabulary ────────────────────────────────────────────────────────
# The backend treats the literal string "all" as "no constraint" on every
# filter key of every dataset. It must reach the wire unchanged (or not at all).

ALL = "all"


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance with values from dictionary
        """
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config

    def save_json(self, path: Path) -> None:
        """Save configuration to JSON file.

        Args:
            path: Path to save configuration file
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_json(cls, path: Path) -> "Config":
        """Load configuration from JSON file.

        Args:
            path: Path to configuration file

        Returns:
            Config instance loaded from file

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


class ExplorerConfig(Config):
    """Explorer configuration loaded from environment variables.

    All env vars have sensible defaults so the explorer works out of the box
    against a backend on localhost.

    Environment variables:
        EXPLORER_API_BASE_URL: Backend base URL (default: http://localhost:3001)
        EXPLORER_TIMEOUT_SECONDS: Base per-request timeout (default: 30)
        EXPLORER_MAX_RETRIES: Transport-level retries (default: 0)
        EXPLORER_RESULT_TTL_SECONDS: Lifetime of cached fetch results (default: 300)
        EXPLORER_OPTIONS_TTL_SECONDS: Dropdown option revalidation interval
            (default: 3600)
        APP_HOST: Explore service bind address (default: 127.0.0.1)
        APP_PORT: Explore service port (default: 8000)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_base_url = os.getenv(
            "EXPLORER_API_BASE_URL", "http://localhost:3001"
        ).rstrip("/")
        self.timeout_seconds = float(os.getenv("EXPLORER_TIMEOUT_SECONDS", "30"))
        self.max_retries = int(os.getenv("EXPLORER_MAX_RETRIES", "0"))
        self.result_ttl_seconds = float(
            os.getenv("EXPLORER_RESULT_TTL_SECONDS", "300")
        )
        self.options_ttl_seconds = float(
            os.getenv("EXPLORER_OPTIONS_TTL_SECONDS", "3600")
        )
        self.api_host = os.getenv("APP_HOST", "127.0.0.1")
        self.api_port = int(os.getenv("APP_PORT", "8000"))
        self.log_format = os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )

    @classmethod
    def from_env(cls) -> "ExplorerConfig":
        """Create an ExplorerConfig instance populated from environment variables."""
        return cls()


class KnownValues:
    """Container for known values used by the parameter encoder."""

    ALL = ALL

    # Month names as the date filters present them, mapped to the
    # two-digit form the events backend expects
    MONTHS = {
        "January": "01",
        "February": "02",
        "March": "03",
        "April": "04",
        "May": "05",
        "June": "06",
        "July": "07",
        "August": "08",
        "September": "09",
        "October": "10",
        "November": "11",
        "December": "12",
    }

    @classmethod
    def is_sentinel(cls, value: Optional[str]) -> bool:
        """Check if a filter value means "no constraint".

        Args:
            value: Filter value (may be None)

        Returns:
            True for None, blank strings and the "all" sentinel
        """
        if value is None:
            return True
        text = str(value)
        return text == cls.ALL or not text.strip()

    @classmethod
    def get_month_number(cls, name: str) -> Optional[str]:
        """Get the two-digit month for a canonical English month name.

        Args:
            name: Month name, e.g. "July"

        Returns:
            "01".."12", or None if the name is not recognised
        """
        return cls.MONTHS.get(name)
