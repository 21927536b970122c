"""
Configuration Management for the Virtual Model Overlay
Uses Pydantic for validation and type safety
"""
from __future__ import annotations

import json
import os
from enum import Enum
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from .utils.errors import ConfigurationError


class LogLevel(str, Enum):
    """Log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


DEFAULT_DESCRIPTION_COLUMNS = [
    "name",
    "title",
    "label",
    "caption",
    "description",
    "display_name",
    "full_name",
]


class OverlayConfig(BaseModel):
    """Main overlay configuration"""
    null_display_string: str = "[NULL]"
    label_separator: str = " "
    orphan_key_separator: str = Field(default="::", min_length=1)
    description_column_candidates: List[str] = Field(
        default_factory=lambda: list(DEFAULT_DESCRIPTION_COLUMNS)
    )
    case_sensitive_attributes: bool = False
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    log_file: Optional[str] = None

    @field_validator('description_column_candidates')
    @classmethod
    def normalize_candidates(cls, v: List[str]) -> List[str]:
        """Candidates are matched case-insensitively"""
        return [name.strip().lower() for name in v if name and name.strip()]

    @classmethod
    def from_env(cls) -> "OverlayConfig":
        """Create configuration from environment variables"""
        kwargs = {}
        if os.getenv("DBVIRTUAL_NULL_DISPLAY") is not None:
            kwargs["null_display_string"] = os.getenv("DBVIRTUAL_NULL_DISPLAY")
        if os.getenv("DBVIRTUAL_LABEL_SEPARATOR") is not None:
            kwargs["label_separator"] = os.getenv("DBVIRTUAL_LABEL_SEPARATOR")
        if os.getenv("DBVIRTUAL_ORPHAN_KEY_SEPARATOR"):
            kwargs["orphan_key_separator"] = os.getenv("DBVIRTUAL_ORPHAN_KEY_SEPARATOR")
        if os.getenv("DBVIRTUAL_DESCRIPTION_COLUMNS"):
            kwargs["description_column_candidates"] = os.getenv(
                "DBVIRTUAL_DESCRIPTION_COLUMNS"
            ).split(",")

        try:
            return cls(
                case_sensitive_attributes=os.getenv(
                    "DBVIRTUAL_CASE_SENSITIVE", "false"
                ).lower() == "true",
                log_level=LogLevel(os.getenv("DBVIRTUAL_LOG_LEVEL", "INFO").upper()),
                json_logs=os.getenv("DBVIRTUAL_JSON_LOGS", "false").lower() == "true",
                log_file=os.getenv("DBVIRTUAL_LOG_FILE"),
                **kwargs,
            )
        except (ValueError, PydanticValidationError) as e:
            raise ConfigurationError(
                f"Invalid overlay configuration in environment: {e}",
                original_error=e,
            )

    @classmethod
    def from_file(cls, path: str) -> "OverlayConfig":
        """
        Load configuration from a YAML or JSON file

        Args:
            path: Path to a .yaml/.yml or .json file

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        if not os.path.exists(path):
            raise ConfigurationError(f"Configuration file not found: {path}", config_key=path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.endswith('.yaml') or path.endswith('.yml'):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Unable to read configuration file {path}: {e}",
                config_key=path,
                original_error=e,
            )

        # The overlay section may be nested or at the top level
        if isinstance(data, dict) and isinstance(data.get("overlay"), dict):
            data = data["overlay"]

        try:
            return cls(**(data or {}))
        except (TypeError, PydanticValidationError) as e:
            raise ConfigurationError(
                f"Invalid overlay configuration in {path}: {e}",
                config_key=path,
                original_error=e,
            )

    model_config = {"use_enum_values": True}


# Global configuration instance
_config: Optional[OverlayConfig] = None


def get_config() -> OverlayConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = OverlayConfig.from_env()
    return _config


def set_config(config: OverlayConfig) -> None:
    """Set the global configuration instance"""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance"""
    global _config
    _config = None
