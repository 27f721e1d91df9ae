"""
Configuration module for auto-form.

Handles environment variables and default settings.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default).lower()).lower() == "true"


@dataclass
class AutoFormConfig:
    """Configuration settings for auto-form."""

    # Validation policy
    skip_hidden_required: bool = True  # hidden fields are not required
    reject_unknown_keys: bool = True

    # Theme preference persistence
    theme_file: str = ".auto_form_theme.json"

    # Logging
    log_level: str = "WARNING"

    # Output settings
    json_schema_version: str = "https://json-schema.org/draft/2020-12/schema"
    indent_json_output: int = 2

    @classmethod
    def from_env(cls) -> "AutoFormConfig":
        """
        Create configuration from environment variables.

        If an environment variable is not set, uses the class field default value.
        """
        _defaults = cls()

        return cls(
            skip_hidden_required=_env_flag("AUTO_FORM_SKIP_HIDDEN_REQUIRED", _defaults.skip_hidden_required),
            reject_unknown_keys=_env_flag("AUTO_FORM_REJECT_UNKNOWN_KEYS", _defaults.reject_unknown_keys),
            theme_file=os.getenv("AUTO_FORM_THEME_FILE", _defaults.theme_file),
            log_level=os.getenv("AUTO_FORM_LOG_LEVEL", _defaults.log_level).upper(),
            indent_json_output=int(os.getenv("AUTO_FORM_JSON_INDENT", str(_defaults.indent_json_output))),
        )


config = AutoFormConfig.from_env()


def get_config() -> AutoFormConfig:
    """Get the current configuration."""
    return config


def update_config(**kwargs) -> AutoFormConfig:
    """Update configuration settings."""
    global config
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
    return config


def setup_logging(level: str | None = None) -> None:
    """
    Configure logging for applications embedding auto-form.

    Args:
        level: Log level name. If None, uses config.log_level.
    """
    logging.basicConfig(
        level=(level or get_config().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
