"""Display formatting helpers."""

from breathwork.progression.types import SessionResult


def format_duration(minutes: int) -> str:
    """Format whole minutes as "45 min" or "2h 5m".

    Example:
        >>> format_duration(125)
        '2h 5m'
    """
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m"


def share_text(result: SessionResult, duration_minutes: int) -> str:
    """Text for sharing a finished session."""
    return (
        f"Just completed a {duration_minutes} minute breathing session "
        f"with {result.quality_score}% quality score!"
    )
