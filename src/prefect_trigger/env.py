"""Environment configuration for prefect-trigger.

Uses pydantic-settings for type-safe configuration with custom directory-tree
search for .env files. Searches from the current directory up to home.
Variable names follow the Prefect client's own (PREFECT_API_URL,
PREFECT_API_KEY) so an existing Prefect profile environment works as is.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from prefect_trigger.models import PREFECT_CLOUD_API_URL, ConnectionConfig


class PrefectSettings(BaseSettings):
    """Connection defaults read from PREFECT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PREFECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = PREFECT_CLOUD_API_URL
    api_key: str | None = None
    account_id: str | None = None
    workspace_id: str | None = None

    poll_frequency: float = Field(default=5.0, gt=0)
    http_timeout: float = Field(default=30.0, gt=0)

    def connection_config(self) -> ConnectionConfig:
        return ConnectionConfig(
            base_url=self.api_url,
            api_key=self.api_key or None,
            account_id=self.account_id or None,
            workspace_id=self.workspace_id or None,
        )


def find_dotenv(start_path: Path | None = None) -> Path | None:
    """Find .env file by searching up the directory tree.

    Searches from start_path (or cwd) up to home directory.
    Returns the first .env file found, or None if not found.
    """
    current = start_path or Path.cwd()
    home = Path.home()

    while current >= home:
        candidate = current / ".env"
        if candidate.exists():
            return candidate
        if current == current.parent:
            break
        current = current.parent

    return None


@lru_cache(maxsize=1)
def get_settings() -> PrefectSettings:
    """Get cached PrefectSettings instance.

    Finds .env by searching up directory tree, then loads settings.
    """
    env_file = find_dotenv()
    if env_file:
        return PrefectSettings(_env_file=env_file)
    return PrefectSettings(_env_file=None)


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
