"""Configuration management for the StudyHub client.

Settings come from an optional JSON config file, overridden by
``STUDYHUB_*`` environment variables.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".studyhub"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"
DEFAULT_TOKEN_FILE = DEFAULT_CONFIG_DIR / "credentials.json"
VALID_LOG_LEVELS = ["debug", "info", "warning", "error"]

ENV_OVERRIDES = {
    "STUDYHUB_BASE_URL": "base_url",
    "STUDYHUB_TIMEOUT": "request_timeout",
    "STUDYHUB_UPLOAD_TIMEOUT": "upload_timeout",
    "STUDYHUB_TOKEN_FILE": "token_file",
    "STUDYHUB_LOG_LEVEL": "log_level",
}


class ClientConfig(BaseModel):
    """Settings for talking to one StudyHub backend."""

    base_url: str = Field(
        default="http://localhost:8080", description="Origin of the StudyHub backend"
    )
    request_timeout: float = Field(
        default=30.0, description="Seconds before an ordinary request is cancelled"
    )
    upload_timeout: float = Field(
        default=120.0, description="Seconds before a file upload is cancelled"
    )
    token_file: Optional[Path] = Field(
        default=DEFAULT_TOKEN_FILE,
        description="Where the access token is persisted (None keeps it in memory)",
    )
    log_level: str = Field(default="warning", description="Logging level")

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got: {v}")
        return v.rstrip("/")

    @field_validator("request_timeout", "upload_timeout")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    @field_validator("token_file", mode="before")
    @classmethod
    def empty_token_file_means_memory_only(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}. Got: {v}")
        return v


def load_config(
    config_path: Optional[Path] = None, use_env: bool = True
) -> ClientConfig:
    """Load configuration from file and/or environment variables.

    Args:
        config_path: Config JSON file; must exist when given explicitly. The
            default location is used only if present.
        use_env: Whether STUDYHUB_* environment variables override the file

    Returns:
        ClientConfig instance

    Raises:
        FileNotFoundError: If an explicit config file does not exist
        ValueError: If the file is not a JSON object or a value is invalid
    """
    config_data: Dict[str, Any] = {}

    path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path) as f:
            try:
                loaded = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in config file {path}: {e}")
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        config_data.update(loaded)
        logger.debug(f"Loaded configuration from {path}")
    elif config_path is not None:
        raise FileNotFoundError(f"Config file not found: {path}")

    if use_env:
        for env_var, field_name in ENV_OVERRIDES.items():
            if env_var in os.environ:
                config_data[field_name] = os.environ[env_var]

    return ClientConfig(**config_data)
