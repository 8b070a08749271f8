"""Progression engine: XP, leveling, streaks, wellness and achievements.

Runs once per completed session. Every function here mutates the UserProgress
(and Achievement) objects it is given in place; the caller owns persistence.

Completion sequence (order matters):
1. Session XP and at most one level-up
2. Streak
3. Wellness score and average quality
4. Achievement unlocks, whose XP rewards may trigger one more level-up
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta

from loguru import logger

from breathwork.patterns.catalog import Pattern
from breathwork.progression.quality import round_half_up
from breathwork.progression.types import Achievement, SessionResult, UserProgress
from breathwork.session.types import CompletionReason

LEVEL_THRESHOLDS: tuple[int, ...] = (0, 500, 1500, 3500, 7500, 15000, 30000)

QUALITY_BONUS_FLOOR = 80
QUICK_SESSION_BONUS = 25
EYES_CLOSED_SESSIONS_FOR_BADGE = 20

AchievementRule = Callable[[UserProgress, int], bool]

ACHIEVEMENT_RULES: dict[str, AchievementRule] = {
    "first_session": lambda progress, quality: progress.total_sessions == 1,
    "perfect_posture_week": lambda progress, quality: progress.current_streak >= 7,
    "mindful_eyes_master": lambda progress, quality: progress.eyes_closed_sessions >= EYES_CLOSED_SESSIONS_FOR_BADGE,
    "rhythm_master": lambda progress, quality: quality >= 95,
    "consistency_champion": lambda progress, quality: progress.current_streak >= 30,
}


def level_threshold(level: int) -> int:
    """XP needed to leave `level`.

    Levels past the end of LEVEL_THRESHOLDS keep growing by the table's last
    increment (15000 XP per level).
    """
    if level < len(LEVEL_THRESHOLDS):
        return LEVEL_THRESHOLDS[max(0, level)]
    last_increment = LEVEL_THRESHOLDS[-1] - LEVEL_THRESHOLDS[-2]
    return LEVEL_THRESHOLDS[-1] + (level - (len(LEVEL_THRESHOLDS) - 1)) * last_increment


def xp_earned(pattern: Pattern, session_quality: int, duration_minutes: int, is_quick_mode: bool) -> int:
    """XP awarded for a completed session.

    Example:
        >>> from breathwork.patterns.catalog import get_pattern
        >>> xp_earned(get_pattern("standard_5_5"), 90, 15, False)
        125
    """
    base = pattern.xp_value
    quality_bonus = max(0, (session_quality - QUALITY_BONUS_FLOOR) * 2)
    duration_bonus = (duration_minutes // 5) * 10
    quick_bonus = QUICK_SESSION_BONUS if is_quick_mode else 0
    return max(0, round_half_up(base + quality_bonus + duration_bonus + quick_bonus))


def check_level_up(progress: UserProgress) -> bool:
    """Apply at most one level-up if XP has reached the current threshold."""
    if progress.xp < progress.xp_to_next_level:
        return False
    progress.level += 1
    progress.xp_to_next_level = level_threshold(progress.level)
    logger.bind(level=progress.level, xp=progress.xp, next_threshold=progress.xp_to_next_level).info("Level up")
    return True


def apply_completion(progress: UserProgress, session_minutes: int, xp: int) -> bool:
    """Record a completed session and apply at most one level-up.

    Returns:
        True when the session caused a level-up
    """
    progress.total_sessions += 1
    progress.total_minutes += max(0, session_minutes)
    progress.xp += max(0, xp)
    return check_level_up(progress)


def update_streak(progress: UserProgress, today: date, last_session_date: date | None) -> int:
    """Update the daily practice streak and record today as the last session day."""
    if last_session_date != today:
        if last_session_date is not None and last_session_date == today - timedelta(days=1):
            progress.current_streak += 1
        else:
            progress.current_streak = 1
    progress.last_session_date = today
    return progress.current_streak


def update_wellness(progress: UserProgress, session_quality: int) -> int:
    streak_bonus = min(progress.current_streak * 2, 20)
    consistency_bonus = min(progress.total_sessions, 30)
    wellness = round_half_up(0.4 * session_quality + 0.3 * streak_bonus + 0.3 * consistency_bonus)
    progress.wellness_score = max(0, min(100, wellness))
    return progress.wellness_score


def update_average_quality(progress: UserProgress, session_quality: int) -> float:
    """Fold a session's quality into the running mean over total_sessions."""
    sessions = progress.total_sessions
    if sessions <= 0:
        return progress.avg_quality
    total = progress.avg_quality * (sessions - 1) + session_quality
    progress.avg_quality = round(total / sessions, 1)
    return progress.avg_quality


def evaluate_achievements(
    progress: UserProgress,
    achievements: list[Achievement],
    session_quality: int,
) -> list[Achievement]:
    """Unlock every achievement whose rule now holds.

    Already-earned achievements are skipped, so evaluating twice with the
    same inputs never grants an achievement or its XP twice.

    Returns:
        Achievements unlocked by this call
    """
    unlocked: list[Achievement] = []
    for achievement in achievements:
        if achievement.earned:
            continue
        rule = ACHIEVEMENT_RULES.get(achievement.id)
        if rule is None or not rule(progress, session_quality):
            continue
        achievement.earned = True
        progress.xp += achievement.xp_reward
        unlocked.append(achievement)
        logger.bind(achievement_id=achievement.id, xp_reward=achievement.xp_reward).info("Achievement unlocked")
    return unlocked


@dataclass
class CompletionOutcome:
    """What a session completion changed.

    Attributes:
        result: Session summary
        level_ups: Number of level-ups applied (0, 1 or 2)
        unlocked: Achievements unlocked by this completion
    """

    result: SessionResult
    level_ups: int = 0
    unlocked: list[Achievement] = field(default_factory=list)


class ProgressionEngine:
    """Applies session completions to a user's progress and achievements."""

    def __init__(self, progress: UserProgress, achievements: list[Achievement]) -> None:
        self.progress = progress
        self.achievements = achievements

    def complete_session(
        self,
        *,
        pattern: Pattern,
        session_quality: int,
        session_minutes: int,
        duration_minutes: int,
        is_quick_mode: bool,
        today: date,
        cycles_completed: int = 0,
        completion_reason: CompletionReason = "cycles",
        eyes_closed_throughout: bool = False,
    ) -> CompletionOutcome:
        """Run the full completion sequence for one session.

        Args:
            pattern: Pattern practised
            session_quality: Final quality score
            session_minutes: Whole minutes actually practised
            duration_minutes: Requested session length (drives the duration bonus)
            is_quick_mode: Quick sessions earn a fixed bonus
            today: Calendar day of completion
            cycles_completed: Cycles finished
            completion_reason: Which terminal trigger ended the session
            eyes_closed_throughout: Eye closure held for the whole session

        Returns:
            CompletionOutcome with the result, level-ups and unlocks
        """
        progress = self.progress
        xp = xp_earned(pattern, session_quality, duration_minutes, is_quick_mode)

        level_ups = int(apply_completion(progress, session_minutes, xp))
        update_streak(progress, today, progress.last_session_date)
        update_wellness(progress, session_quality)
        update_average_quality(progress, session_quality)
        if eyes_closed_throughout:
            progress.eyes_closed_sessions += 1

        unlocked = evaluate_achievements(progress, self.achievements, session_quality)
        if unlocked:
            level_ups += int(check_level_up(progress))

        result = SessionResult(
            quality_score=session_quality,
            duration_minutes=session_minutes,
            xp_earned=xp,
            pattern_id=pattern.id,
            is_quick_mode=is_quick_mode,
            cycles_completed=cycles_completed,
            completion_reason=completion_reason,
            eyes_closed_throughout=eyes_closed_throughout,
        )
        logger.bind(
            pattern_id=pattern.id,
            quality=session_quality,
            xp=xp,
            level=progress.level,
            streak=progress.current_streak,
            unlocked=[a.id for a in unlocked],
        ).info("Session completion applied")
        return CompletionOutcome(result=result, level_ups=level_ups, unlocked=unlocked)
