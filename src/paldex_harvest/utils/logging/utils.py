# ABOUTME: Logger utilities with context binding and operation tracking decorators
# ABOUTME: Provides get_logger function and decorators for consistent structured logging

import functools
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance with automatic module detection.

    Args:
        name: Logger name, auto-detected from caller if None

    Returns:
        Configured structlog logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            # Get the module name of the caller
            name = frame.f_back.f_globals.get("__name__", "unknown")

    return structlog.get_logger(name or "paldex_harvest")


def generate_operation_id() -> str:
    """Generate a unique operation ID for tracking requests."""
    return str(uuid.uuid4())[:8]


def with_async_operation_context(operation: str, **context) -> Callable[[F], F]:
    """Decorator to add operation context to async function logging.

    Args:
        operation: Operation name for logging
        **context: Additional context to bind to logger

    Returns:
        Decorated async function with operation logging
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            operation_id = generate_operation_id()

            bound_logger = logger.bind(
                operation=operation, operation_id=operation_id, function=func.__name__, **context
            )

            bound_logger.debug(f"Starting {operation}")
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
                duration = time.perf_counter() - start_time
                bound_logger.debug(f"Completed {operation}", duration_seconds=round(duration, 3), success=True)
                return result

            except Exception as e:
                duration = time.perf_counter() - start_time
                bound_logger.warning(
                    f"Failed {operation}",
                    duration_seconds=round(duration, 3),
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False,
                )
                raise

        return wrapper  # type: ignore[return-value]

    return decorator


def log_api_call(api_name: str, **context) -> Callable[[F], F]:
    """Decorator to log outbound HTTP calls with timing and outcome.

    Args:
        api_name: Name of the upstream being called
        **context: Additional context for the call

    Returns:
        Decorated function with API call logging
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            call_id = generate_operation_id()

            # Pick the URL out of the positional arguments when there is one
            url = kwargs.get("url")
            if url is None:
                for arg in args:
                    if isinstance(arg, str) and (arg.startswith("http://") or arg.startswith("https://")):
                        url = arg
                        break

            bound_logger = logger.bind(api_name=api_name, call_id=call_id, url=url, **context)

            bound_logger.debug(f"API call to {api_name}")
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
                duration = time.perf_counter() - start_time
                bound_logger.info(
                    f"API call to {api_name} succeeded", duration_seconds=round(duration, 3), success=True
                )
                return result

            except Exception as e:
                duration = time.perf_counter() - start_time
                bound_logger.error(
                    f"API call to {api_name} failed",
                    duration_seconds=round(duration, 3),
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False,
                )
                raise

        return wrapper  # type: ignore[return-value]

    return decorator


class LogContext:
    """Context manager for binding logger context."""

    def __init__(self, logger: structlog.stdlib.BoundLogger, **context):
        self.logger = logger
        self.context = context
        self.bound_logger = None

    def __enter__(self) -> structlog.stdlib.BoundLogger:
        self.bound_logger = self.logger.bind(**self.context)
        return self.bound_logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self.bound_logger is not None:
            self.bound_logger.error("Context operation failed", error=str(exc_val), error_type=exc_type.__name__)


def with_category_context(category: str, slug: str | None = None) -> LogContext:
    """Create a logging context for work on one category listing (and optionally one entity).

    Args:
        category: Category key, e.g. ``storage``
        slug: Entity slug when the operation targets a single record

    Returns:
        LogContext manager with category context
    """
    logger = get_logger()
    context: dict[str, Any] = {"category": category}
    if slug is not None:
        context["slug"] = slug
    return LogContext(logger, **context)


def with_operation_context(operation: str, **context) -> LogContext:
    """Create a logging context for a CLI-level operation.

    Args:
        operation: Name of the operation
        **context: Additional context to bind

    Returns:
        LogContext manager with operation context
    """
    logger = get_logger()
    operation_id = generate_operation_id()
    return LogContext(logger, operation=operation, operation_id=operation_id, **context)
