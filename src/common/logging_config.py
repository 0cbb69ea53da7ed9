"""Centralized logging configuration for the gateway and the translation core."""

import logging
import sys
from pathlib import Path
from typing import Optional

from common.config import settings
from common.utils import DateTimeUtils


def setup_logging(
    service_name: str, log_file: Optional[str] = None, log_level: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging for a service with consistent formatting.

    Handlers are attached to the logger named after the service and to the
    module loggers of the application packages, so `logging.getLogger(__name__)`
    in any module writes through the same handlers.

    Args:
        service_name: Name of the service (e.g., 'gateway')
        log_file: Optional log file path. If None, logs only to console
        log_level: Optional log level override. If None, uses settings.log_level

    Returns:
        Configured logger instance
    """
    level = log_level or settings.log_level
    log_level_value = getattr(logging, level.upper(), logging.INFO)

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    simple_formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    handlers = []

    # Console handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level_value)
    console_handler.setFormatter(simple_formatter)
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(log_level_value)
        file_handler.setFormatter(detailed_formatter)
        handlers.append(file_handler)

    for name in (service_name,) + APPLICATION_LOGGERS:
        target = logging.getLogger(name)
        target.setLevel(log_level_value)
        # Remove existing handlers to avoid duplicates
        target.handlers.clear()
        for handler in handlers:
            target.addHandler(handler)
        # Prevent propagation to root logger
        target.propagate = False

    return logging.getLogger(service_name)


def get_log_file_path(service_name: str) -> str:
    """
    Generate a log file path for a service.

    Args:
        service_name: Name of the service

    Returns:
        Path to log file
    """
    date_string = DateTimeUtils.get_date_string_for_log_file()
    return f"./logs/{service_name}_{date_string}.log"


class ServiceLogger:
    """Convenience class for service-specific logging."""

    def __init__(self, service_name: str, enable_file_logging: bool = True):
        """
        Initialize service logger.

        Args:
            service_name: Name of the service
            enable_file_logging: Whether to enable file logging
        """
        self.service_name = service_name
        log_file = get_log_file_path(service_name) if enable_file_logging else None
        self.logger = setup_logging(service_name, log_file)

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        self.logger.info(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        self.logger.error(message, **kwargs)


# Module loggers of the application packages
APPLICATION_LOGGERS = ("common", "translator", "gateway")


def configure_third_party_loggers(level: str = "WARNING") -> None:
    """
    Configure logging levels for third-party libraries to reduce noise.

    Args:
        level: Log level for third-party libraries
    """
    third_party_loggers = [
        "redis",
        "asyncio",
        "httpx",
        "httpcore",
        "uvicorn.access",
    ]

    log_level = getattr(logging, level.upper(), logging.WARNING)

    for logger_name in third_party_loggers:
        logging.getLogger(logger_name).setLevel(log_level)


def setup_service_logging(
    service_name: str, enable_file_logging: bool = True
) -> ServiceLogger:
    """
    Convenience function to set up logging for a service.

    Args:
        service_name: Name of the service
        enable_file_logging: Whether to enable file logging

    Returns:
        ServiceLogger instance
    """
    configure_third_party_loggers()
    return ServiceLogger(service_name, enable_file_logging)
