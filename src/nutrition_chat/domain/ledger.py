"""Ledger aggregates: daily logs own meal entries, which own food items."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4


@dataclass
class SavedFoodItem:
    """Persisted food line owned by a meal entry."""

    name: str
    quantity: str
    calories: int
    id: UUID = field(default_factory=uuid4)


@dataclass
class MealEntry:
    """Persisted meal owned by a daily log."""

    meal_type: str
    total_calories: int
    protein: float
    carbs: float
    fats: float
    associated_message_id: UUID | None = None
    food_items: list[SavedFoodItem] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: UUID = field(default_factory=uuid4)

    def matches_type(self, meal_type: str) -> bool:
        """Return True when the entry has the given meal type, ignoring case."""
        return self.meal_type.casefold() == meal_type.casefold()


@dataclass
class DailyLog:
    """Aggregate root for one calendar day of nutrition and water."""

    date: date
    total_calories: int = 0
    protein: float = 0.0
    carbs: float = 0.0
    fats: float = 0.0
    water_intake_ml: int = 0
    meals: list[MealEntry] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)

    def find_meal_by_type(self, meal_type: str) -> MealEntry | None:
        """Return the entry for a meal type, if the day has one."""
        for entry in self.meals:
            if entry.matches_type(meal_type):
                return entry
        return None

    def find_meal(self, entry_id: UUID) -> MealEntry | None:
        """Return the entry with the given id."""
        for entry in self.meals:
            if entry.id == entry_id:
                return entry
        return None

    def find_meal_by_message(self, message_id: UUID) -> MealEntry | None:
        """Return the entry produced by the given assistant message."""
        for entry in self.meals:
            if entry.associated_message_id == message_id:
                return entry
        return None

    def restore(self, snapshot: "DailyLog") -> None:
        """Reset this log in place to a previously captured snapshot."""
        self.date = snapshot.date
        self.total_calories = snapshot.total_calories
        self.protein = snapshot.protein
        self.carbs = snapshot.carbs
        self.fats = snapshot.fats
        self.water_intake_ml = snapshot.water_intake_ml
        self.meals = snapshot.meals
