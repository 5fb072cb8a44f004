"""
API routers package.

Contains all API route handlers.
"""

from . import albums, feeds, process, publishers

__all__ = ["albums", "feeds", "process", "publishers"]
