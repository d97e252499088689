# ABOUTME: Simplified logging configuration using loguru
# ABOUTME: Dual-mode operation: interactive CLI vs production JSON logging

import logging
import os
import sys
import time
from pathlib import Path
from typing import Any

import structlog
from loguru import logger

LOG_DIR = Path("logs")

# Loggers that would otherwise flood the console during model and HTTP calls
QUIET_LOGGERS = ["LiteLLM", "litellm", "dspy", "openai"]
WARNING_LOGGERS = ["httpx", "httpcore", "urllib3", "asyncio"]


class LoggingMode:
    """Logging mode constants."""

    INTERACTIVE = "interactive"
    PRODUCTION = "production"


def detect_logging_mode() -> str:
    """Detect whether we're running in interactive or production mode."""
    mode = os.getenv("LEVEL_SCOUT_LOG_MODE")
    if mode and mode.lower() in [LoggingMode.INTERACTIVE, LoggingMode.PRODUCTION]:
        return mode.lower()

    return LoggingMode.INTERACTIVE if sys.stdout.isatty() else LoggingMode.PRODUCTION


def setup_third_party_logging() -> None:
    """Configure third-party library logging to avoid CLI interference."""
    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)

    for logger_name in WARNING_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    logging.getLogger("py.warnings").setLevel(logging.ERROR)


_LEVEL_ALIASES = {"warn": "WARNING", "exception": "ERROR", "msg": "INFO"}


def _forward_to_loguru(_, method_name: str, event_dict: dict[str, Any]) -> Any:
    """Final structlog processor: hand the event to loguru so one set of sinks receives everything.

    The loguru record is patched with the structlog logger name and the call site,
    so sinks report where the event was logged rather than this processor.
    """
    name = event_dict.pop("logger_name", None)
    function = event_dict.pop("func_name", None)
    line = event_dict.pop("lineno", None)

    def _locate(record: dict[str, Any]) -> None:
        if name:
            record["name"] = name
        if function:
            record["function"] = function
        if line:
            record["line"] = line

    event = str(event_dict.pop("event", ""))
    fields = " ".join(f"{key}={value}" for key, value in event_dict.items())
    level = _LEVEL_ALIASES.get(method_name, method_name.upper())
    logger.patch(_locate).bind(**event_dict).log(level, f"{event} | {fields}" if fields else event)
    raise structlog.DropEvent


def _configure_structlog(numeric_level: int) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.FUNC_NAME, structlog.processors.CallsiteParameter.LINENO]
            ),
            _forward_to_loguru,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )


def _ensure_log_dir(max_retries: int = 3) -> bool:
    """Create the log directory, tolerating races between parallel processes."""
    for attempt in range(max_retries):
        try:
            LOG_DIR.mkdir(exist_ok=True)
            return True
        except OSError:
            if attempt == max_retries - 1:
                return False
            time.sleep(0.01 * (attempt + 1))
    return False


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

    _configure_structlog(numeric_level)

    # Remove default loguru handler
    logger.remove()

    if mode == LoggingMode.INTERACTIVE and not _ensure_log_dir():
        # Could not create the log directory, fall back to stdout
        mode = LoggingMode.PRODUCTION

    if mode == LoggingMode.PRODUCTION:
        logger.add(sys.stdout, level=log_level, format="{time} | {level} | {name} | {message}", serialize=True)
        return

    log_file_path = log_file or str(LOG_DIR / "level-scout.log")

    # Human-readable logs
    logger.add(
        log_file_path,
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        rotation="10 MB",
        retention="7 days",
    )

    # JSON logs for machine processing
    logger.add(
        LOG_DIR / "level-scout.json",
        level=log_level,
        format="{time} | {level} | {name} | {message}",
        serialize=True,
        rotation="10 MB",
        retention="7 days",
    )

    # Errors only
    logger.add(
        LOG_DIR / "errors.log",
        level="ERROR",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        backtrace=True,
        diagnose=True,
    )


def get_logging_status() -> dict[str, Any]:
    """Get current logging configuration status."""
    mode = detect_logging_mode()
    interactive = mode == LoggingMode.INTERACTIVE

    return {
        "mode": mode,
        "log_directory": str(LOG_DIR.absolute()) if LOG_DIR.exists() else None,
        "log_files": {
            "main": str(LOG_DIR / "level-scout.log") if interactive else None,
            "json": str(LOG_DIR / "level-scout.json") if interactive else None,
            "errors": str(LOG_DIR / "errors.log") if interactive else None,
        },
        "third_party_suppressed": QUIET_LOGGERS + WARNING_LOGGERS,
    }
