"""Configuration management for the Joplin notebook tagger."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from joplin_tagger.exceptions import TaggerError


class ConfigError(TaggerError):
    """Configuration-related errors."""

    pass


class MissingTokenError(ConfigError):
    """Raised when no API token was configured."""

    pass


class ConfigParser:
    """Helper class for parsing configuration values."""

    @staticmethod
    def parse_bool(value: str) -> bool:
        """Parse boolean value from string."""
        value_lower = value.lower()
        if value_lower in ("true", "1", "yes"):
            return True
        elif value_lower in ("false", "0", "no"):
            return False
        else:
            raise ConfigError(f"Invalid boolean value: {value}")

    @staticmethod
    def parse_int(value: str, field_name: str) -> int:
        """Parse integer value from string.

        Args:
            value: String value to parse
            field_name: Name of the field for error messages
        """
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"Invalid integer value for {field_name}: {value}")

    @staticmethod
    def get_env_var(name: str, prefix: str = "JOPLIN_") -> Optional[str]:
        """Get environment variable and strip whitespace."""
        value = os.environ.get(f"{prefix}{name}")
        return value.strip() if value else None


class ConfigValidator:
    """Helper class for configuration validation."""

    @staticmethod
    def validate_token_present(token: Optional[str]) -> None:
        """The access token is the one setting that has no default."""
        if not token or not token.strip():
            raise MissingTokenError("Token is required")

    @staticmethod
    def validate_base_url(base_url: str) -> None:
        """Validate base URL has a scheme and host."""
        if not base_url or not base_url.strip():
            raise ConfigError("Base URL cannot be empty")
        if not base_url.startswith(("http://", "https://")):
            raise ConfigError(
                f"Base URL must start with http:// or https://, got '{base_url}'"
            )

    @staticmethod
    def validate_positive(value: int, field_name: str) -> None:
        """Validate an integer setting is positive."""
        if value <= 0:
            raise ConfigError(f"{field_name} must be positive, got {value}")


class TaggerConfig:
    """Configuration for a notebook tagging run."""

    DEFAULT_BASE_URL = "http://localhost:41184"
    DEFAULT_TAG_PREFIX = "notebook."

    # Keys accepted in config files, with the types they must carry
    FILE_FIELDS = {
        "base_url": str,
        "token": str,
        "timeout": int,
        "tag_prefix": str,
        "max_attempts": int,
        "page_size": int,
        "resolve_conflicts": bool,
    }

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: int = 10,
        tag_prefix: str = DEFAULT_TAG_PREFIX,
        max_attempts: int = 3,
        page_size: int = 100,
        resolve_conflicts: bool = False,
    ):
        """Initialize configuration with default values."""
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.tag_prefix = tag_prefix
        self.max_attempts = max_attempts
        self.page_size = page_size
        self.resolve_conflicts = resolve_conflicts

    @classmethod
    def from_environment(cls, prefix: str = "JOPLIN_") -> "TaggerConfig":
        """Load configuration from environment variables."""
        values: Dict[str, Any] = {}

        base_url = ConfigParser.get_env_var("BASE_URL", prefix)
        if base_url:
            values["base_url"] = base_url

        values["token"] = ConfigParser.get_env_var("TOKEN", prefix)

        # The prefix is taken verbatim so a trailing space is not lost
        tag_prefix = os.environ.get(f"{prefix}TAG_PREFIX")
        if tag_prefix is not None:
            values["tag_prefix"] = tag_prefix

        for name in ("timeout", "max_attempts", "page_size"):
            raw = ConfigParser.get_env_var(name.upper(), prefix)
            if raw:
                values[name] = ConfigParser.parse_int(raw, name)

        resolve_str = ConfigParser.get_env_var("RESOLVE_CONFLICTS", prefix)
        if resolve_str:
            values["resolve_conflicts"] = ConfigParser.parse_bool(resolve_str)

        return cls(**values)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "TaggerConfig":
        """Load configuration from a JSON or YAML file."""
        return cls(**cls._read_file(file_path))

    @classmethod
    def _read_file(cls, file_path: Union[str, Path]) -> Dict[str, Any]:
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigError(f"Configuration file not found: {file_path}")

        try:
            with open(file_path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"Error reading configuration file {file_path}: {e}")

        suffix = file_path.suffix.lower()
        if suffix == ".json":
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in file {file_path}: {e}")
        elif suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in file {file_path}: {e}")
        else:
            raise ConfigError(
                f"Unsupported file format '{file_path.suffix}' for file {file_path}. Use .json, .yaml, or .yml files."
            )

        if not isinstance(data, dict):
            raise ConfigError(
                f"Configuration file {file_path} must contain a dictionary/object, got {type(data)}"
            )

        try:
            return cls._validate_file_data(data)
        except ConfigError as e:
            raise ConfigError(f"Error in file {file_path}: {e}")

    @classmethod
    def _validate_file_data(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and convert data types from configuration file."""
        validated = {}

        for key, expected in cls.FILE_FIELDS.items():
            if key not in data or data[key] is None:
                # Use default for missing or null values
                continue
            value = data[key]
            if expected is int:
                # bool is an int subclass; reject it explicitly
                if isinstance(value, bool):
                    raise ConfigError(
                        f"Invalid data type for '{key}': expected integer, got {type(value)}"
                    )
                if isinstance(value, str) and value.isdigit():
                    value = int(value)
            if not isinstance(value, expected):
                raise ConfigError(
                    f"Invalid data type for '{key}': expected {expected.__name__}, got {type(value)}"
                )
            validated[key] = value

        return validated

    @classmethod
    def load(
        cls, config_file: Optional[Union[str, Path]] = None, **overrides
    ) -> "TaggerConfig":
        """Load configuration with fallback.

        Priority: overrides > environment > config_file > defaults
        """
        values: Dict[str, Any] = {}
        if config_file:
            values.update(cls._read_file(config_file))

        # Only variables that are actually set override the file
        env_config = cls.from_environment()
        env_names = {
            "base_url": "JOPLIN_BASE_URL",
            "token": "JOPLIN_TOKEN",
            "timeout": "JOPLIN_TIMEOUT",
            "tag_prefix": "JOPLIN_TAG_PREFIX",
            "max_attempts": "JOPLIN_MAX_ATTEMPTS",
            "page_size": "JOPLIN_PAGE_SIZE",
            "resolve_conflicts": "JOPLIN_RESOLVE_CONFLICTS",
        }
        for key, env_name in env_names.items():
            if key == "tag_prefix":
                # An empty prefix is a valid choice
                if env_name in os.environ:
                    values[key] = env_config.tag_prefix
            elif os.environ.get(env_name, "").strip():
                values[key] = getattr(env_config, key)

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> None:
        """Validate configuration and raise ConfigError if invalid."""
        ConfigValidator.validate_token_present(self.token)
        ConfigValidator.validate_base_url(self.base_url)
        ConfigValidator.validate_positive(self.timeout, "Timeout")
        ConfigValidator.validate_positive(self.max_attempts, "Max attempts")
        ConfigValidator.validate_positive(self.page_size, "Page size")

    @property
    def is_valid(self) -> bool:
        """Check if configuration is valid without raising exceptions."""
        try:
            self.validate()
            return True
        except ConfigError:
            return False

    def copy(self, **overrides) -> "TaggerConfig":
        """Create a copy of this configuration with optional overrides."""
        current_values = {
            "base_url": self.base_url,
            "token": self.token,
            "timeout": self.timeout,
            "tag_prefix": self.tag_prefix,
            "max_attempts": self.max_attempts,
            "page_size": self.page_size,
            "resolve_conflicts": self.resolve_conflicts,
        }
        current_values.update(overrides)
        return self.__class__(**current_values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, hiding sensitive data."""
        return {
            "base_url": self.base_url,
            "token": "***" if self.token else None,
            "timeout": self.timeout,
            "tag_prefix": self.tag_prefix,
            "max_attempts": self.max_attempts,
            "page_size": self.page_size,
            "resolve_conflicts": self.resolve_conflicts,
        }

    def __repr__(self) -> str:
        """String representation, hiding sensitive data."""
        token_display = "***" if self.token else None
        return (
            f"TaggerConfig(base_url='{self.base_url}', token={token_display}, "
            f"timeout={self.timeout}, tag_prefix='{self.tag_prefix}', "
            f"max_attempts={self.max_attempts}, page_size={self.page_size}, "
            f"resolve_conflicts={self.resolve_conflicts})"
        )
