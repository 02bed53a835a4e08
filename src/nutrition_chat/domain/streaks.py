"""Domain models for hydration streaks."""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class HydrationBadge:
    """Badge unlocked by keeping a water goal streak."""

    id: str
    name: str
    description: str
    streak_days: int


@dataclass(frozen=True)
class WaterStreak:
    """Persisted streak state."""

    current_streak: int = 0
    last_goal_date: date | None = None
    unlocked_badges: tuple[str, ...] = field(default_factory=tuple)
