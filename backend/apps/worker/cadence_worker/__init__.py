"""
Cadence background worker.

Runs scheduled catalog builds with arq.
"""

__version__ = "0.1.0"
