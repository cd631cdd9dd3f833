"""
Configuration loading and validation for the playground.
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from ..utils.exceptions import ConfigError

# Profile root holding installed components
ENV_HOME = "TIUP_HOME"
# Base directory for instance working directories; also passed to each child
ENV_INSTANCE_DATA_DIR = "TIUP_INSTANCE_DATA_DIR"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    console: bool = True


class ProbeConfig(BaseModel):
    """Readiness probe budget."""
    attempts: int = Field(default=60, ge=1)
    interval_seconds: float = Field(default=1.0, ge=0)
    connect_timeout_seconds: float = Field(default=3.0, gt=0)


class PlaygroundConfig(BaseModel):
    """Main configuration object."""
    version: str = ""
    host: str = "127.0.0.1"
    pd: int = 1
    tikv: int = 1
    tidb: int = 1
    tiup_binary: str = "tiup"
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_counts(self):
        """Every role needs at least one instance."""
        if self.pd < 1 or self.tidb < 1 or self.tikv < 1:
            raise ValueError(
                f"all components count must be great than 0 "
                f"(tidb={self.tidb}, tikv={self.tikv}, pd={self.pd})"
            )
        return self


class Environment(BaseModel):
    """Paths taken from the process environment."""
    profile_root: Path
    data_root: Path

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Environment":
        """
        Read the required variables.

        Raises:
            ConfigError: If either variable is missing or empty
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field, name in (("profile_root", ENV_HOME), ("data_root", ENV_INSTANCE_DATA_DIR)):
            value = environ.get(name, "")
            if not value:
                raise ConfigError(f"cannot read environment variable {name}")
            values[field] = Path(value)
        return cls(**values)


def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """
    Load and parse a YAML file.

    Raises:
        ConfigError: If file doesn't exist or is invalid
    """
    if not file_path.exists():
        raise ConfigError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)
            if data is None:
                return {}
            return data
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {file_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading {file_path}: {e}")


def build_config(data: Dict[str, Any]) -> PlaygroundConfig:
    """Validate a raw mapping into a PlaygroundConfig."""
    try:
        return PlaygroundConfig(**data)
    except ValidationError as e:
        messages = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
        raise ConfigError(messages) from e


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> PlaygroundConfig:
    """
    Load playground configuration.

    Args:
        config_path: Optional YAML file with defaults
        overrides: Values that win over the file (usually CLI flags);
            None values are ignored

    Returns:
        Validated PlaygroundConfig

    Raises:
        ConfigError: If configuration is invalid
    """
    data: Dict[str, Any] = {}
    if config_path is not None:
        data = load_yaml_file(config_path)
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {config_path} must be a mapping")

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    return build_config(data)
