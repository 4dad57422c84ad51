"""Application settings."""

from .settings import SatireFeedSettings, get_settings, load_settings

__all__ = ["SatireFeedSettings", "get_settings", "load_settings"]
