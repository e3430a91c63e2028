"""Core: config, runtime settings cache, task store, and application bootstrap."""

from imgbed.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
