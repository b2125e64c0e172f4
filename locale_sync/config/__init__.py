"""Configuration for locale-sync."""

from .loader import find_config, load_config
from .settings import RateLimiting, Settings

__all__ = ["RateLimiting", "Settings", "find_config", "load_config"]
