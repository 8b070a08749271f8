"""Breathwork error types.

Errors here are raised at construction or persistence boundaries only.
State-machine commands issued in the wrong state are no-ops, not errors.
"""


class BreathworkError(Exception):
    """Base exception for breathwork errors."""

    pass


class PatternInvariantError(BreathworkError):
    """Raised when a breathing pattern violates its duration invariants.

    Attributes:
        code: Error code (e.g., "INVALID_PATTERN")
        details: List of error detail strings (e.g., "NON_POSITIVE_INHALE")
    """

    def __init__(self, code: str, details: list[str]):
        self.code = code
        self.details = details
        super().__init__(f"{code}: {details}")


class ProgressStoreError(BreathworkError):
    """Raised when the progress store cannot persist a record.

    Attributes:
        key: Record key that failed to save
        original_error: Underlying exception
    """

    def __init__(self, key: str, original_error: Exception) -> None:
        self.key = key
        self.original_error = original_error
        super().__init__(f"Saving '{key}' failed: {original_error}")
