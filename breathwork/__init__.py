"""Alternate-nostril breathing coach.

Session orchestration, quality scoring and progression for timed
alternate-nostril breathing practice.
"""

__version__ = "0.1.0"
