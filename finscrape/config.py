"""
Runtime settings for the scraper script.

The pipeline itself reads no environment; run_scraper.py builds a Settings
from FINSCRAPE_* variables (a local .env file is loaded first) and passes
the values down explicitly.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "FINSCRAPE_"


class Settings(BaseModel):
    """Script-level configuration."""
    log_level: int = logging.INFO
    log_file: Optional[str] = None
    view: str = "by_time"
    coerce: bool = True
    strict: bool = True
    output_format: str = Field(default="table", description="table, csv or json")

    @field_validator("log_level", mode="before")
    @classmethod
    def _level_name(cls, value):
        # Accept "DEBUG" as well as 10
        if isinstance(value, str) and not value.isdigit():
            level = logging.getLevelName(value.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {value}")
            return level
        return value

    @field_validator("output_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("table", "csv", "json"):
            raise ValueError(f"Unknown output format: {value}")
        return value


def load_settings(env_file: Optional[str] = None, **overrides) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional .env path (defaults to python-dotenv's lookup)
        **overrides: Values that win over the environment (e.g. CLI flags)

    Returns:
        Validated Settings
    """
    load_dotenv(env_file)

    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
