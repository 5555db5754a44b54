"""Configuration package."""

from .loader import load_document, load_settings
from .models import LoggingConfig, MachineConfig, Settings

__all__ = [
    "LoggingConfig",
    "MachineConfig",
    "Settings",
    "load_document",
    "load_settings",
]
