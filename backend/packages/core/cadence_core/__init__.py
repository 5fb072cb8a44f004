"""
Cadence Core Package.

This package contains the feed registry, album resolution and
aggregation services, and shared schemas for the Cadence application.
"""

__version__ = "0.1.0"

from .logging_config import init_logging, get_logger

__all__ = ["init_logging", "get_logger"]
