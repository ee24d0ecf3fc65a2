"""Configuration — optional YAML user settings."""

from uca.core.config.loader import ConfigError, find_config_file, load_options  # noqa: F401
