"""User profile domain model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserProfile:
    """Preferences that shape the conversation context."""

    name: str = ""
    daily_goal: int = 2000
    daily_water_goal_ml: int = 2500
    diet_type: str = "None"
    allergies: str = "None"
    favorite_cuisines: str = "None"
    goal_type: str = "Maintain"
