# ABOUTME: Logger utilities with context binding and API call tracking decorators
# ABOUTME: Provides get_logger function and decorators for consistent structured logging

import functools
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
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

    name = name or "level_scout"
    return structlog.get_logger(name, logger_name=name)


def generate_operation_id() -> str:
    """Generate a unique operation ID for tracking requests."""
    return str(uuid.uuid4())[:8]


def log_api_call(api_name: str, **context) -> Callable[[F], F]:
    """Decorator to log outbound API calls with timing and outcome.

    Args:
        api_name: Name of the API being called
        **context: Additional context for the API call

    Returns:
        Decorated async function with API call logging
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            call_id = generate_operation_id()

            # First positional string argument after self is the resource key (video ID, level ID, name)
            resource = next((arg for arg in args if isinstance(arg, str)), None)
            bound_logger = logger.bind(
                api_name=api_name, call_id=call_id, function=func.__name__, resource=resource, **context
            )

            bound_logger.debug(f"API call to {api_name}")
            start_time = time.monotonic()

            try:
                result = await func(*args, **kwargs)
                duration = time.monotonic() - start_time
                bound_logger.debug(
                    f"API call to {api_name} succeeded",
                    duration_seconds=round(duration, 3),
                    found=result is not None,
                    success=True,
                )
                return result

            except Exception as e:
                duration = time.monotonic() - start_time
                bound_logger.warning(
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

    def __init__(self, logger: structlog.typing.FilteringBoundLogger, **context):
        self.logger = logger
        self.context = context
        self.bound_logger = None

    def __enter__(self) -> structlog.typing.FilteringBoundLogger:
        self.bound_logger = self.logger.bind(**self.context)
        return self.bound_logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self.bound_logger is not None:
            self.bound_logger.error("Context operation failed", error=str(exc_val), error_type=exc_type.__name__)


def with_video_context(video_id: str) -> LogContext:
    """Create a logging context for operations on a single video.

    Args:
        video_id: YouTube video ID for context binding

    Returns:
        LogContext manager with video context
    """
    logger = get_logger()
    return LogContext(logger, video_id=video_id, entity_type="video")


def with_pipeline_context(pipeline_name: str, **context) -> LogContext:
    """Create a logging context for pipeline operations.

    Args:
        pipeline_name: Name of the pipeline
        **context: Additional context to bind

    Returns:
        LogContext manager with pipeline context
    """
    logger = get_logger()
    operation_id = generate_operation_id()
    return LogContext(logger, pipeline=pipeline_name, operation_id=operation_id, **context)
