from .schema import (
    ParrotConfig,
    APIConfig,
    LocalConfig,
    GeneralConfig,
    PERSONALITIES,
)
from .loader import ConfigError, config_paths, find_config, load_config, write_sample_config

__all__ = [
    "ParrotConfig",
    "APIConfig",
    "LocalConfig",
    "GeneralConfig",
    "PERSONALITIES",
    "ConfigError",
    "config_paths",
    "find_config",
    "load_config",
    "write_sample_config",
]
