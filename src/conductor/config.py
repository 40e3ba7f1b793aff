"""Configuration for conductor using pydantic-settings."""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s:%(name)s:%(levelname)s:%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Settings(BaseSettings):
    """Runtime settings.

    Every field can be overridden with a ``CONDUCTOR_`` prefixed
    environment variable, e.g. ``CONDUCTOR_LLM_MODEL=gpt-4o-mini``.
    """

    # Model endpoint
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    llm_model: str | None = None

    # Loop bounds
    max_turns: int = 10
    tool_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CONDUCTOR_")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str | int | None = None) -> None:
    """Install the conductor log format on the root logger.

    Defaults to ``Settings.log_level``.
    """
    if level is None:
        level = get_settings().log_level
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
