"""
DNS-SD Browser Logging Module

This module provides structured logging for the browser and a logger for
service discovery events.
"""

from .event_logger import EventFileLogger, ServiceEventLogger, format_event
from .logger import (
    StructuredLogger,
    get_logger,
    log_exception,
    setup_logging,
)

__all__ = [
    # Core logging
    "StructuredLogger",
    "setup_logging",
    "get_logger",
    "log_exception",
    # Discovery event logging
    "ServiceEventLogger",
    "EventFileLogger",
    "format_event",
]
