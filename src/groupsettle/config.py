"""Configuration management for GroupSettle."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import SplitRule


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GROUPSETTLE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Ledger database path
    database_path: Path = Path.home() / ".groupsettle" / "groupsettle.db"

    # Display settings
    currency_symbol: str = "$"

    # Split rule used by add-expense when --split isn't given
    default_split_rule: SplitRule = SplitRule.EQUAL

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the GROUPSETTLE_* variables in your "
            f"environment or .env file.\n"
            f"Error: {e}"
        ) from e
