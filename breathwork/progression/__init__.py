"""Progression module - quality scoring, XP, levels, streaks and achievements."""
