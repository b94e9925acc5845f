# ABOUTME: Logging configuration using loguru sinks and structlog bound loggers
# ABOUTME: Dual-mode operation: interactive CLI (log files) vs production JSON logging

import logging
import os
import sys
import time
from pathlib import Path
from typing import Any

import structlog
from loguru import logger

LOG_DIR = Path("logs")

# Libraries whose request chatter would drown out the engine's own events
NOISY_LOGGERS = ["httpx", "httpcore", "asyncio", "h11", "h2", "hpack"]


class LoggingMode:
    """Logging mode constants."""

    INTERACTIVE = "interactive"
    PRODUCTION = "production"


def detect_logging_mode() -> str:
    """Detect whether we're running in interactive or production mode."""
    mode = os.getenv("PALDEX_HARVEST_LOG_MODE")
    if mode and mode.lower() in [LoggingMode.INTERACTIVE, LoggingMode.PRODUCTION]:
        return mode.lower()

    return LoggingMode.INTERACTIVE if sys.stdout.isatty() else LoggingMode.PRODUCTION


def setup_third_party_logging() -> None:
    """Quiet third-party library logging so it does not interfere with CLI output."""
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    logging.getLogger("py.warnings").setLevel(logging.ERROR)


def _forward_to_loguru(_, method_name: str, event_dict: dict[str, Any]) -> Any:
    """structlog renderer that hands each event to loguru so both share the same sinks."""
    event = event_dict.pop("event", "")
    name = event_dict.pop("logger", None) or "paldex_harvest"
    level = "WARNING" if method_name == "warn" else method_name.upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        level = "INFO"
    logger.bind(**{**event_dict, "name": name}).log(level, event)
    raise structlog.DropEvent


def _configure_structlog(log_level: str) -> None:
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            _forward_to_loguru,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_logging(mode: str | None = None, log_level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging using loguru.

    Args:
        mode: Logging mode (interactive/production), auto-detected if None
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Custom log file path, uses default if None
    """
    if mode is None:
        mode = detect_logging_mode()

    setup_third_party_logging()

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(numeric_level)

    # Remove default loguru handler
    logger.remove()
    _configure_structlog(log_level)

    if mode == LoggingMode.INTERACTIVE:
        # Interactive mode: logs to files, no console interference
        for attempt in range(3):
            try:
                LOG_DIR.mkdir(exist_ok=True)
                break
            except OSError:
                if attempt == 2:
                    mode = LoggingMode.PRODUCTION
                    break
                time.sleep(0.01 * (attempt + 1))

        if mode == LoggingMode.PRODUCTION:
            logger.add(sys.stderr, level=log_level, format="{time} | {level} | {name} | {message}", serialize=True)
            return

        log_file_path = log_file or str(LOG_DIR / "paldex-harvest.log")

        # Human-readable logs
        logger.add(
            log_file_path,
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]} - {message} | {extra}",
            rotation="10 MB",
            retention="7 days",
        )

        # JSON logs for machine processing
        logger.add(
            LOG_DIR / "paldex-harvest.json",
            level=log_level,
            serialize=True,
            rotation="10 MB",
            retention="7 days",
        )

        # Errors only
        logger.add(
            LOG_DIR / "errors.log",
            level="ERROR",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]} - {message} | {extra}",
            backtrace=True,
            diagnose=True,
        )
    else:
        # Production mode: JSON on stderr keeps stdout free for record output
        logger.add(sys.stderr, level=log_level, format="{time} | {level} | {name} | {message}", serialize=True)


def get_logging_status() -> dict[str, Any]:
    """Get current logging configuration status."""
    mode = detect_logging_mode()
    interactive = mode == LoggingMode.INTERACTIVE

    return {
        "mode": mode,
        "log_directory": str(LOG_DIR.absolute()) if LOG_DIR.exists() else None,
        "log_files": {
            "main": str(LOG_DIR / "paldex-harvest.log") if interactive else None,
            "json": str(LOG_DIR / "paldex-harvest.json") if interactive else None,
            "errors": str(LOG_DIR / "errors.log") if interactive else None,
        },
        "third_party_suppressed": [*NOISY_LOGGERS, "py.warnings"],
    }
