"""
Configuration models and loaders.
"""
from .loader import (
    ENV_HOME,
    ENV_INSTANCE_DATA_DIR,
    Environment,
    LoggingConfig,
    PlaygroundConfig,
    ProbeConfig,
    load_config,
)

__all__ = [
    "ENV_HOME",
    "ENV_INSTANCE_DATA_DIR",
    "Environment",
    "LoggingConfig",
    "PlaygroundConfig",
    "ProbeConfig",
    "load_config",
]
