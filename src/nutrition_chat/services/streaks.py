"""Hydration goal streaks and streak badges."""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Protocol

from nutrition_chat.domain.streaks import HydrationBadge, WaterStreak

_logger = logging.getLogger(__name__)

STREAK_BADGES: tuple[HydrationBadge, ...] = (
    HydrationBadge("streak_3", "Getting Started", "3-day streak", 3),
    HydrationBadge("streak_7", "Week Warrior", "7-day streak", 7),
    HydrationBadge("streak_30", "Hydration Hero", "30-day streak", 30),
)


class StreakRepository(Protocol):
    """Persistence interface for the water streak state."""

    def get_streak(self) -> WaterStreak:
        """Return the stored streak, or an empty one."""

    def save_streak(self, streak: WaterStreak) -> None:
        """Persist the streak state."""


@dataclass(frozen=True)
class StreakUpdate:
    """Result of a goal check."""

    streak: WaterStreak
    counted: bool
    new_badges: list[HydrationBadge]


@dataclass
class StreakService:
    """Counts consecutive days on which the water goal was reached."""

    repository: StreakRepository

    def get_streak(self) -> WaterStreak:
        """Return the current streak state."""
        return self.repository.get_streak()

    def unlocked_badges(self) -> list[HydrationBadge]:
        """Return badges unlocked so far."""
        unlocked = set(self.repository.get_streak().unlocked_badges)
        return [badge for badge in STREAK_BADGES if badge.id in unlocked]

    def check_goal_reached(
        self, intake_ml: int, goal_ml: int, today: date
    ) -> StreakUpdate:
        """Count ``today`` towards the streak once intake reaches the goal."""
        current = self.repository.get_streak()
        if intake_ml < goal_ml or current.last_goal_date == today:
            return StreakUpdate(streak=current, counted=False, new_badges=[])

        if current.last_goal_date == today - timedelta(days=1):
            streak_days = current.current_streak + 1
        else:
            streak_days = 1

        unlocked = list(current.unlocked_badges)
        new_badges = [
            badge
            for badge in STREAK_BADGES
            if badge.id not in unlocked and streak_days >= badge.streak_days
        ]
        unlocked.extend(badge.id for badge in new_badges)
        updated = replace(
            current,
            current_streak=streak_days,
            last_goal_date=today,
            unlocked_badges=tuple(unlocked),
        )
        self.repository.save_streak(updated)
        _logger.info("Water goal reached on %s; streak=%s", today, streak_days)
        for badge in new_badges:
            _logger.info("Unlocked hydration badge %s", badge.id)
        return StreakUpdate(streak=updated, counted=True, new_badges=new_badges)
