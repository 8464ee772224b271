"""Utility modules for configuration, logging, caching and notifications."""

from aisignal.utils.config import Settings, get_settings
from aisignal.utils.logger import (
    configure_logging,
    get_logger,
    get_signal_logger,
    request_context,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "get_signal_logger",
    "request_context",
]
