"""Configuration module -- exports Settings and the layered loader.

There is no module-level settings instance; build one with
``load_settings()`` at the edge of the program and pass snapshots inward.
"""

from src.config.loader import load_settings
from src.config.settings import Settings

__all__ = ["Settings", "load_settings"]
