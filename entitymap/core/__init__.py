"""Core library modules."""

from entitymap.core.config import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
