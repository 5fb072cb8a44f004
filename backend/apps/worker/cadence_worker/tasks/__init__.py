"""
Task modules for background processing.

This package contains all background task implementations.
"""

from . import catalog

__all__ = ["catalog"]
