"""Pydantic models for the HTTP API."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from nutrition_chat.domain.ledger import DailyLog, MealEntry
from nutrition_chat.domain.messages import Message
from nutrition_chat.domain.streaks import HydrationBadge, WaterStreak
from nutrition_chat.services.chat import ChatTurn
from nutrition_chat.services.streaks import StreakUpdate


class ChatRequest(BaseModel):
    """Incoming user message."""

    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1)


class WaterRequest(BaseModel):
    """Direct water log request."""

    amount_ml: int = Field(gt=0)


class FoodItemOut(BaseModel):
    """Saved food line."""

    id: UUID
    name: str
    quantity: str
    calories: int


class MealEntryOut(BaseModel):
    """Meal entry with its food items."""

    id: UUID
    meal_type: str
    timestamp: datetime
    total_calories: int
    protein: float
    carbs: float
    fats: float
    associated_message_id: UUID | None
    food_items: list[FoodItemOut]

    @classmethod
    def from_domain(cls, entry: MealEntry) -> "MealEntryOut":
        """Build the response model from a ledger entry."""
        return cls(
            id=entry.id,
            meal_type=entry.meal_type,
            timestamp=entry.timestamp,
            total_calories=entry.total_calories,
            protein=entry.protein,
            carbs=entry.carbs,
            fats=entry.fats,
            associated_message_id=entry.associated_message_id,
            food_items=[
                FoodItemOut(
                    id=item.id,
                    name=item.name,
                    quantity=item.quantity,
                    calories=item.calories,
                )
                for item in entry.food_items
            ],
        )


class DailyLogOut(BaseModel):
    """Daily totals with meals."""

    date: date
    total_calories: int
    protein: float
    carbs: float
    fats: float
    water_intake_ml: int
    meals: list[MealEntryOut]

    @classmethod
    def from_domain(cls, log: DailyLog) -> "DailyLogOut":
        """Build the response model from a daily log."""
        return cls(
            date=log.date,
            total_calories=log.total_calories,
            protein=log.protein,
            carbs=log.carbs,
            fats=log.fats,
            water_intake_ml=log.water_intake_ml,
            meals=[MealEntryOut.from_domain(entry) for entry in log.meals],
        )


class MessageOut(BaseModel):
    """Chat message with an optional meal summary in wire format."""

    id: UUID
    content: str
    is_user: bool
    timestamp: datetime
    summary: dict[str, object] | None

    @classmethod
    def from_domain(cls, message: Message) -> "MessageOut":
        """Build the response model from a chat message."""
        return cls(
            id=message.id,
            content=message.content,
            is_user=message.is_user,
            timestamp=message.timestamp,
            summary=message.summary.to_wire() if message.summary else None,
        )


class BadgeOut(BaseModel):
    """Unlocked streak badge."""

    id: str
    name: str
    description: str
    streak_days: int

    @classmethod
    def from_domain(cls, badge: HydrationBadge) -> "BadgeOut":
        """Build the response model from a badge."""
        return cls(
            id=badge.id,
            name=badge.name,
            description=badge.description,
            streak_days=badge.streak_days,
        )


class StreakOut(BaseModel):
    """Water streak state."""

    current_streak: int
    last_goal_date: date | None
    unlocked_badges: list[str]
    new_badges: list[str] = Field(default_factory=list)
    badges: list[BadgeOut] = Field(default_factory=list)

    @classmethod
    def from_domain(
        cls,
        streak: WaterStreak,
        update: StreakUpdate | None = None,
        badges: list[HydrationBadge] | None = None,
    ) -> "StreakOut":
        """Build the response model from a streak, an update and badge details."""
        return cls(
            current_streak=streak.current_streak,
            last_goal_date=streak.last_goal_date,
            unlocked_badges=list(streak.unlocked_badges),
            new_badges=[badge.id for badge in update.new_badges] if update else [],
            badges=[BadgeOut.from_domain(badge) for badge in badges or []],
        )


class ChatTurnOut(BaseModel):
    """Reply to a chat message."""

    reply: MessageOut
    suggestions: list[str]
    daily_log: DailyLogOut | None
    meal_entry_id: UUID | None
    resolution: str | None
    water_logged_ml: int | None
    streak: StreakOut | None
    failed: bool

    @classmethod
    def from_domain(cls, turn: ChatTurn) -> "ChatTurnOut":
        """Build the response model from a chat turn."""
        daily_log = DailyLogOut.from_domain(turn.daily_log) if turn.daily_log else None
        streak = None
        if turn.streak is not None:
            streak = StreakOut.from_domain(turn.streak.streak, turn.streak)
        return cls(
            reply=MessageOut.from_domain(turn.reply),
            suggestions=turn.suggestions,
            daily_log=daily_log,
            meal_entry_id=turn.meal.entry.id if turn.meal else None,
            resolution=turn.meal.resolution.rule.value if turn.meal else None,
            water_logged_ml=turn.water_logged_ml,
            streak=streak,
            failed=turn.failed,
        )


class WaterOut(BaseModel):
    """Result of a direct water log."""

    daily_log: DailyLogOut
    streak: StreakOut
