"""
Core utility functions for the stockwatch backend.
"""

from .date_utils import ensure_utc, utcnow

__all__ = [
    "utcnow",
    "ensure_utc",
]
