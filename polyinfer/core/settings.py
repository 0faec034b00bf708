from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PolyinferSettings(BaseSettings):
    """
    Process settings loaded from POLYINFER_* environment variables.
    The .env file is loaded automatically by pydantic-settings.
    """
    model_config = SettingsConfigDict(
        env_prefix='POLYINFER_', env_file='.env', env_file_encoding='utf-8', extra='ignore'
    )

    # --- Logging ---
    LOG: bool = Field(True, description="Set to false to silence all library logging.")
    LOG_LEVEL: str = Field("INFO", description="Log level used by setup_logging (e.g., DEBUG, INFO, WARNING).")
    LOG_JSON: bool = Field(False, description="Emit console logs as JSON lines.")
    LOG_FILE: Optional[str] = Field(None, description="Optional: path of a rotating JSON log file.")

    # --- Configuration ---
    CONFIG_PATH: Optional[str] = Field(
        None, description="Optional: YAML/JSON configuration installed as the process default on first use."
    )

    # --- Transport ---
    HTTP_TIMEOUT: float = Field(30.0, gt=0, description="Timeout in seconds of the default httpx transport.")


@lru_cache(maxsize=1)
def get_settings() -> PolyinferSettings:
    """
    Returns a cached PolyinferSettings instance.
    Settings are read on first call rather than on import, which keeps
    module imports side-effect free for tests.
    """
    return PolyinferSettings()
