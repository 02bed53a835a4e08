"""Supabase repository for the water streak state."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from nutrition_chat.domain.streaks import WaterStreak
from nutrition_chat.services.streaks import StreakRepository

_STREAK_ROW_ID = 1


@dataclass
class SupabaseStreakRepository(StreakRepository):
    """Stores the streak as a single row."""

    client: Client

    def get_streak(self) -> WaterStreak:
        """Return the stored streak, or an empty one."""
        response = (
            self.client.table("water_streaks")
            .select("current_streak, last_goal_date, unlocked_badges")
            .eq("id", _STREAK_ROW_ID)
            .limit(1)
            .execute()
        )
        if not response.data:
            return WaterStreak()
        row = response.data[0]
        last_goal = row.get("last_goal_date")
        return WaterStreak(
            current_streak=int(row.get("current_streak") or 0),
            last_goal_date=date.fromisoformat(str(last_goal)) if last_goal else None,
            unlocked_badges=tuple(row.get("unlocked_badges") or ()),
        )

    def save_streak(self, streak: WaterStreak) -> None:
        """Upsert the streak row."""
        self.client.table("water_streaks").upsert(
            {
                "id": _STREAK_ROW_ID,
                "current_streak": streak.current_streak,
                "last_goal_date": (
                    streak.last_goal_date.isoformat() if streak.last_goal_date else None
                ),
                "unlocked_badges": list(streak.unlocked_badges),
            }
        ).execute()
