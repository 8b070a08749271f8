import pytest
from pydantic import ValidationError

from breathwork.core.errors import PatternInvariantError
from breathwork.patterns.catalog import DEFAULT_PATTERN_ID, Pattern, get_pattern, list_patterns


def test_catalog_lists_all_patterns_in_order():
    """Catalog returns the five patterns, easiest first."""
    ids = [p.id for p in list_patterns()]
    assert ids == ["quick_4_4", "beginner_4_4", "standard_5_5", "advanced_6_6", "master_4_7_8"]


def test_get_pattern_by_id():
    pattern = get_pattern("master_4_7_8")
    assert pattern.inhale_seconds == 4
    assert pattern.hold_seconds == 7
    assert pattern.exhale_seconds == 8
    assert pattern.xp_value == 150
    assert pattern.has_hold


def test_unknown_pattern_falls_back_to_default():
    """Unknown ids never raise, they resolve to the default pattern."""
    assert get_pattern("does_not_exist").id == DEFAULT_PATTERN_ID
    assert get_pattern(None).id == DEFAULT_PATTERN_ID


def test_unknown_pattern_uses_requested_default():
    assert get_pattern("nope", default_id="beginner_4_4").id == "beginner_4_4"


def test_patterns_are_immutable():
    pattern = get_pattern("standard_5_5")
    with pytest.raises(ValidationError):
        pattern.inhale_seconds = 10  # type: ignore[misc]


@pytest.mark.parametrize(
    ("inhale", "hold", "exhale", "detail"),
    [
        (0, 0, 5, "NON_POSITIVE_INHALE"),
        (5, 0, 0, "NON_POSITIVE_EXHALE"),
        (5, -1, 5, "NEGATIVE_HOLD"),
    ],
)
def test_invalid_durations_raise(inhale, hold, exhale, detail):
    """Construction rejects patterns that violate the duration invariants."""
    with pytest.raises(PatternInvariantError) as exc_info:
        Pattern(
            id="broken",
            name="Broken",
            inhale_seconds=inhale,
            hold_seconds=hold,
            exhale_seconds=exhale,
            xp_value=10,
            optimal_duration_minutes=5,
        )
    assert exc_info.value.code == "INVALID_PATTERN"
    assert detail in exc_info.value.details
