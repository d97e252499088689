# ABOUTME: Cross-cutting utilities and shared infrastructure
# ABOUTME: Supporting services: logging, rate limiting, rich output

"""
Utils Layer: Shared infrastructure and cross-cutting concerns

This layer provides:
- Logging configuration and structured logger helpers
- Per-dependency rate limiters
- Rich tables for CLI output

Data Flow: Supporting services for all other layers
"""

from . import logging

__all__ = [
    "logging",
]
