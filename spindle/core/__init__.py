"""Core: settings, site context, application wiring."""

from spindle.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
