# ABOUTME: Logging configuration and structured logger helpers
# ABOUTME: structlog loggers for call sites, loguru sinks for output

from .config import LoggingMode, configure_logging, detect_logging_mode, get_logging_status
from .utils import get_logger, log_api_call, with_pipeline_context, with_video_context

__all__ = [
    # Configuration
    "LoggingMode",
    "configure_logging",
    "detect_logging_mode",
    "get_logging_status",
    # Utilities
    "get_logger",
    "log_api_call",
    "with_pipeline_context",
    "with_video_context",
]
