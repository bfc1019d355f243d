"""Configuration objects for olsread.

Reader settings are plain dataclasses that can be loaded from a YAML file,
either flat or nested under a ``reader`` key::

    reader:
      encoding: latin-1
      max_channels: 16
"""

from .runtime import ReaderConfig, config_from_mapping, load_config

__all__ = ["ReaderConfig", "config_from_mapping", "load_config"]
