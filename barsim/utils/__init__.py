# barsim/utils/__init__.py
"""
Utility functions and helpers.
"""

from .config_loader import load_config, save_config, get_default_config
from .logging_config import setup_logging, setup_logging_from_config
from .time_helpers import normalize_frequency, to_timestamp, format_duration

__all__ = [
    "load_config",
    "save_config",
    "get_default_config",
    "setup_logging",
    "setup_logging_from_config",
    "normalize_frequency",
    "to_timestamp",
    "format_duration",
]
