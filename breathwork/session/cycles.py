"""Cycle calculator.

One full cycle is the pattern's phase sequence performed once through each
nostril, so a cycle lasts twice the sum of the pattern's phase lengths.
"""

import math

from breathwork.patterns.catalog import Pattern

QUICK_SESSION_CYCLES = 4


def cycle_seconds(pattern: Pattern) -> int:
    """Length of one full cycle (both nostrils) in seconds."""
    return 2 * (pattern.inhale_seconds + pattern.hold_seconds + pattern.exhale_seconds)


def calculate_cycles(pattern: Pattern, duration_minutes: float, is_quick_mode: bool = False) -> int:
    """Derive the number of cycles a session runs for.

    Args:
        pattern: Breathing pattern
        duration_minutes: Requested session length
        is_quick_mode: Quick sessions always run QUICK_SESSION_CYCLES

    Returns:
        Total cycles, at least 1

    Example:
        >>> from breathwork.patterns.catalog import get_pattern
        >>> calculate_cycles(get_pattern("standard_5_5"), 15)
        45
    """
    if is_quick_mode:
        return QUICK_SESSION_CYCLES
    return max(1, math.floor(duration_minutes * 60 / cycle_seconds(pattern)))


def breaths_per_cycle(pattern: Pattern) -> int:
    """Phase transitions in one cycle: 3 phases per nostril with a hold, else 2."""
    return 6 if pattern.has_hold else 4
