"""
Structured Logging Framework

This module provides the core logging infrastructure using structlog, with a
human-readable console output and an optional rotating JSON log file.
"""

import logging
import logging.handlers
import sys
import traceback
from pathlib import Path
from typing import Optional

import structlog

from ..config.schema import LoggingConfig


class StructuredLogger:
    """Structured logger using structlog over the stdlib logging tree."""

    def __init__(self, config: LoggingConfig):
        """Initialize structured logger.

        Args:
            config: Logging configuration
        """
        self.config = config
        self._configured = False

    def configure(self) -> None:
        """Configure stdlib handlers and structlog processors.

        structlog events are handed to the stdlib handlers unrendered, so the
        console and the JSON file each render the same event dict. Records
        from plain stdlib loggers go through ``foreign_pre_chain`` first.
        """
        if self._configured:
            return

        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        log_level = getattr(logging, self.config.level.upper())
        root_logger.setLevel(log_level)

        if self.config.format == "structured":
            renderer = structlog.processors.KeyValueRenderer(
                key_order=["event"], sort_keys=True
            )
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=False)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=renderer,
                foreign_pre_chain=self._pre_chain(),
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(console_handler)

        if self.config.file:
            root_logger.addHandler(self._create_file_handler(log_level))

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *self._pre_chain(),
                structlog.processors.StackInfoRenderer(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._configured = True

    @staticmethod
    def _pre_chain() -> list:
        return [
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
        ]

    def _create_file_handler(self, log_level: int) -> logging.Handler:
        """Rotating JSON file handler."""
        log_path = Path(self.config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=self.config.file,
            maxBytes=self.config.max_size_mb * 1024 * 1024,
            backupCount=self.config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=self._pre_chain(),
            )
        )
        return file_handler

    def get_logger(self, name: str = "dnssd_browser") -> structlog.BoundLogger:
        """Get a structured logger instance.

        Args:
            name: Logger name

        Returns:
            Structured logger instance
        """
        if not self._configured:
            self.configure()

        return structlog.get_logger(name)


# Global logger instance
_logger_instance: Optional[StructuredLogger] = None


def setup_logging(config: LoggingConfig) -> None:
    """Setup global logging configuration.

    Args:
        config: Logging configuration
    """
    global _logger_instance
    structlog.reset_defaults()
    _logger_instance = StructuredLogger(config)
    _logger_instance.configure()


def get_logger(name: str = "dnssd_browser"):
    """Get a logger instance.

    Before ``setup_logging`` runs this returns a logger using structlog's
    default configuration.

    Args:
        name: Logger name

    Returns:
        Structured logger instance
    """
    if _logger_instance is None:
        return structlog.get_logger(name)

    return _logger_instance.get_logger(name)


def log_exception(logger, message: str, exc: Optional[BaseException] = None) -> None:
    """Log an exception with detailed traceback information.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance (optional, will use current exception if None)
    """
    if exc is None:
        exc = sys.exc_info()[1]

    if exc is None:
        logger.error(message)
        return

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        message,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        traceback=tb_str,
    )
