"""Configuration loading."""

from ears_skin.config.schema import Config, load_config

__all__ = ["Config", "load_config"]
