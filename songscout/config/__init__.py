"""Configuration module: exports Settings and load_config."""

from songscout.config.loader import load_config
from songscout.config.settings import Settings

__all__ = ["Settings", "load_config"]
