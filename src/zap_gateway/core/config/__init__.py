"""Configuration module with YAML and environment variable support."""

from .settings import SecurityMode, Settings, get_settings


__all__ = [
    "SecurityMode",
    "Settings",
    "get_settings",
]
