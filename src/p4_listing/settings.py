from __future__ import annotations

import os
from enum import StrEnum, auto
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from p4_listing.config import ENV_VARIABLES

ENV_FILE = find_dotenv(usecwd=True)


class OutputFormat(StrEnum):
    """Rendering of the listed files."""

    TEXT = auto()
    JSONL = auto()
    YAML = auto()


class Settings(BaseModel):
    """Configuration settings for the p4_listing module."""

    model_config = ConfigDict(frozen=True)

    port: str = Field(default="", description="Perforce server address (P4PORT).")
    user: str = Field(default="", description="Perforce user (P4USER).")
    client: str = Field(default="", description="Client workspace (P4CLIENT).")
    charset: str = Field(default="", description="Server charset (P4CHARSET).")
    p4_bin: str = Field(default="p4", description="p4 executable.")
    log_file: str = Field(default="", description="Log file path.")
    output_format: OutputFormat = Field(default=OutputFormat.TEXT, description="Output format.")

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:  # noqa: ANN401
        """Build settings from the P4* environment variables, then apply `overrides`.

        A `.env` file found from the current directory is loaded first, without
        replacing variables already set. Overrides that are None or empty are ignored.

        Returns:
            Settings: the resulting settings
        """
        if ENV_FILE:
            load_dotenv(ENV_FILE, override=False)
        values: dict[str, Any] = {name: os.environ.get(var, "") for name, var in ENV_VARIABLES.items()}
        values.update({name: value for name, value in overrides.items() if value not in {None, ""}})
        return cls(**values)
