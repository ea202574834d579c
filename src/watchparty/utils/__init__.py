"""
Utilities for the Watch Party Server

This module contains utility functions for common operations
like broadcasting and validation.
"""

from .broadcast import broadcast_to_room
from .validation import coerce_source, coerce_time

__all__ = [
    "broadcast_to_room",
    "coerce_source",
    "coerce_time",
]
