"""
Validation Utilities

Contains utility functions for validating values taken from client actions
before they reach the playback state.
"""

import math
from typing import Any, Optional


def coerce_time(value: Any) -> Optional[float]:
    """
    Validate a playback position.

    Args:
        value: The raw ``time`` field of an action

    Returns:
        The position as a number, or None if it is missing or not a
        finite real number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        if not math.isfinite(value):
            return None
    except OverflowError:
        return None
    return value


def coerce_source(value: Any) -> Optional[str]:
    """
    Validate a media source.

    Args:
        value: The raw ``src`` field of an action

    Returns:
        The source string, or None if it is missing, empty or not a string
    """
    if not isinstance(value, str) or not value:
        return None
    return value
