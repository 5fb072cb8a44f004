"""
Cadence API application.

FastAPI service exposing albums, publishers and the feed registry.
"""

__version__ = "0.1.0"
