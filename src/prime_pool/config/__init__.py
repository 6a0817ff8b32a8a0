from .loader import ConfigError, load_config, load_yaml_config
from .models import AppConfig, LoggingConfig, PoolConfig

__all__ = ["AppConfig", "ConfigError", "LoggingConfig", "PoolConfig", "load_config", "load_yaml_config"]
