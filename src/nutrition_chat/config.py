"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from nutrition_chat.domain.profile import UserProfile

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    api_token: str
    openai_model: str = "gpt-4o"
    openai_temperature: float = 0.6
    completion_retry_attempts: int = 3
    completion_retry_delay_seconds: float = 1.0
    context_window_size: int = 10
    timezone: str = "UTC"
    ledger_rollback_on_save_failure: bool = False
    user_name: str = ""
    daily_calorie_goal: int = 2000
    daily_water_goal_ml: int = 2500
    diet_type: str = "None"
    allergies: str = ""
    favorite_cuisines: str = ""
    goal_type: str = "Maintain"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def user_profile(self) -> UserProfile:
        """Build the user profile from the configured defaults."""
        return UserProfile(
            name=self.user_name.strip(),
            daily_goal=self.daily_calorie_goal,
            daily_water_goal_ml=self.daily_water_goal_ml,
            diet_type=self.diet_type or "None",
            allergies=self.allergies or "None",
            favorite_cuisines=self.favorite_cuisines or "None",
            goal_type=self.goal_type or "Maintain",
        )
