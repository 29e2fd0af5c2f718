"""
Core utilities and configuration for the Muktsar NGO client.

This package provides the settings model and logging configuration shared by
every other subpackage.
"""

from muktsar_ngo.core.config import Settings, get_settings, reset_settings_cache
from muktsar_ngo.core.logging_config import get_logger, setup_logging

__all__ = ["Settings", "get_logger", "get_settings", "reset_settings_cache", "setup_logging"]
