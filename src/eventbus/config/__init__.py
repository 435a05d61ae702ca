"""Configuration: YAML + env overlay."""

from eventbus.config.loader import _deep_update, load_config, load_config_with_env, reload_config
from eventbus.config.schema import Config, cfg, default_config

__all__ = [
    "Config",
    "_deep_update",
    "cfg",
    "default_config",
    "load_config",
    "load_config_with_env",
    "reload_config",
]
