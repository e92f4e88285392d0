"""Configuration settings for the HTTP upload server."""
from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from logger_config import LOG_LEVELS

# Config document read at startup
CONFIG_FILE = "config.yml"
CONFIG_ENV_VAR = "UPLOAD_SERVER_CONFIG"

# Defaults for the optional keys
DEFAULT_HOST = "0.0.0.0"
UPLOAD_DIR = "./uploads"
UPLOAD_LOG_FILE = "log.txt"
MAX_UPLOAD_SIZE = 100 * 1024 * 1024  # 100MB
LOG_LEVEL = "INFO"

# Streaming
CHUNK_SIZE = 8192  # 8KB chunks

# Upload log timestamp, local time
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ConfigError(Exception):
    """Raised when the config document cannot be read or validated."""


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int
    log_timestamp: bool
    custom_html_head: str
    custom_html_body: str
    enable_xss_protection: bool

    host: str = DEFAULT_HOST
    upload_dir: str = UPLOAD_DIR
    log_file: str = UPLOAD_LOG_FILE
    max_upload_size: int = MAX_UPLOAD_SIZE
    log_level: str = LOG_LEVEL

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v.upper()


def load_settings(path: Union[str, Path] = CONFIG_FILE) -> Settings:
    """Load settings from a YAML document.

    The whole load fails on any read, parse or validation problem; required
    keys are never filled in with defaults.

    Raises:
        ConfigError: if the file is unreadable or malformed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    try:
        return Settings.model_validate(document)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
