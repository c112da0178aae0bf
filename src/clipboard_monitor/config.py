"""Configuration management for the clipboard monitor."""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLIPBOARD_MONITOR_"

TRIGGER_FORMATS = ("xml", "search")
DEFAULT_TRIGGER_TAGS = ("file", "search", "read")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def to_bool(value: str) -> bool:
    """Convert an on/off style string, raising ValueError otherwise."""
    value_lower = value.lower().strip()
    if value_lower in ('true', '1', 'yes', 'on'):
        return True
    if value_lower in ('false', '0', 'no', 'off', ''):
        return False
    raise ValueError("valid: true/false, 1/0, yes/no, on/off")


def to_tags(value: str) -> Tuple[str, ...]:
    """Split a comma-separated tag list."""
    return tuple(tag.strip() for tag in value.split(",") if tag.strip())


def parse_env(env_var: str, default: Any, convert: Callable[[str], Any]) -> Any:
    """Read and convert an environment variable, keeping the default when it is unset or invalid."""
    value = os.getenv(env_var)
    if value is None:
        return default

    try:
        return convert(value)
    except ValueError as e:
        logger.warning(
            f"Invalid value '{value}' for {env_var} ({e}). "
            f"Using default: {default}"
        )
        return default


# Field -> converter for its CLIPBOARD_MONITOR_<FIELD> override
ENV_CONVERTERS = {
    "poll_interval_ms": int,
    "paused_interval_ms": int,
    "read_timeout_seconds": float,
    "trigger_format": str,
    "trigger_tags": to_tags,
    "exit_on_control_close": to_bool,
    "watch_parent": to_bool,
    "log_level": str.upper,
}

# Accepted JSON types per field; bool is never accepted as a number
FIELD_TYPES = {
    "poll_interval_ms": (int,),
    "paused_interval_ms": (int,),
    "read_timeout_seconds": (int, float),
    "trigger_format": (str,),
    "trigger_tags": (tuple,),
    "exit_on_control_close": (bool,),
    "watch_parent": (bool,),
    "log_level": (str,),
}


def default_config_path() -> Path:
    """Location of the optional JSON config file."""
    return Path.home() / ".config" / "clipboard_monitor" / "config.json"


@dataclass
class MonitorConfig:
    """Polling cadence and behaviour of the clipboard monitor."""
    poll_interval_ms: int = 500            # Sleep between cycles while active
    paused_interval_ms: int = 1000         # Sleep between cycles while paused
    read_timeout_seconds: float = 2.0      # Per clipboard tool invocation
    trigger_format: str = "xml"            # "xml" -> trigger_xml, "search" -> trigger_search
    trigger_tags: Tuple[str, ...] = field(default=DEFAULT_TRIGGER_TAGS)
    exit_on_control_close: bool = True     # Treat stdin EOF as parent exit
    watch_parent: bool = True              # Exit when the spawning process is gone
    log_level: str = "WARNING"

    @property
    def poll_interval(self) -> float:
        """Active cycle interval in seconds."""
        return self.poll_interval_ms / 1000.0

    @property
    def paused_interval(self) -> float:
        """Paused cycle interval in seconds."""
        return self.paused_interval_ms / 1000.0

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'MonitorConfig':
        """Load configuration from file and environment variables."""
        config_dict = asdict(cls())

        config_path = config_path or default_config_path()
        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    file_config = json.load(f)
                logger.info(f"Loading configuration from {config_path}")

                if not isinstance(file_config, dict):
                    logger.error(
                        f"Configuration file must hold a JSON object: {config_path} "
                        f"(got {type(file_config).__name__}). Using default configuration instead."
                    )
                    file_config = {}

                for key, value in file_config.items():
                    if key in config_dict:
                        config_dict[key] = value
                    else:
                        logger.warning(f"Ignoring unknown config key '{key}' in {config_path}")

            except json.JSONDecodeError as e:
                logger.error(
                    f"Configuration file is corrupted or contains invalid JSON: "
                    f"{config_path} ({e}). Using default configuration instead."
                )
            except OSError as e:
                logger.warning(f"Failed to load config from file: {e}")

        if isinstance(config_dict["trigger_tags"], list):
            config_dict["trigger_tags"] = tuple(config_dict["trigger_tags"])
        if isinstance(config_dict["log_level"], str):
            config_dict["log_level"] = config_dict["log_level"].upper()

        # Override with environment variables
        for name, convert in ENV_CONVERTERS.items():
            config_dict[name] = parse_env(f'{ENV_PREFIX}{name.upper()}', config_dict[name], convert)

        config = cls(**config_dict)
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration types and values."""
        for f in fields(self):
            value = getattr(self, f.name)
            expected = FIELD_TYPES[f.name]
            if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
                raise ConfigurationError(
                    f"Invalid type for {f.name}: {type(value).__name__}. "
                    f"Expected {' or '.join(t.__name__ for t in expected)}"
                )

        if self.poll_interval_ms <= 0:
            raise ConfigurationError(
                f"Invalid poll interval {self.poll_interval_ms}ms. "
                "Must be greater than 0"
            )

        if self.paused_interval_ms <= 0:
            raise ConfigurationError(
                f"Invalid paused interval {self.paused_interval_ms}ms. "
                "Must be greater than 0"
            )

        if self.read_timeout_seconds <= 0:
            raise ConfigurationError(
                f"Invalid read timeout {self.read_timeout_seconds}. "
                "Must be greater than 0"
            )

        if self.trigger_format not in TRIGGER_FORMATS:
            raise ConfigurationError(
                f"Invalid trigger format '{self.trigger_format}'. "
                f"Valid options: {', '.join(TRIGGER_FORMATS)}"
            )

        if not self.trigger_tags:
            raise ConfigurationError("At least one trigger tag is required")

        for tag in self.trigger_tags:
            if not isinstance(tag, str) or not tag.replace("-", "_").isidentifier():
                raise ConfigurationError(
                    f"Invalid trigger tag {tag!r}. "
                    "Tags must be alphanumeric names"
                )

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level '{self.log_level}'. "
                f"Valid options: {', '.join(LOG_LEVELS)}"
            )
