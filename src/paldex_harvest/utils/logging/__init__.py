# ABOUTME: Logging configuration and structured logger helpers
# ABOUTME: Provides loguru-backed sinks and structlog loggers for the extraction engine

from .config import LoggingMode, configure_logging, detect_logging_mode, get_logging_status
from .utils import (
    LogContext,
    get_logger,
    log_api_call,
    with_async_operation_context,
    with_category_context,
    with_operation_context,
)

__all__ = [
    # Configuration
    "LoggingMode",
    "configure_logging",
    "detect_logging_mode",
    "get_logging_status",
    # Utilities
    "LogContext",
    "get_logger",
    "log_api_call",
    "with_async_operation_context",
    "with_category_context",
    "with_operation_context",
]
