"""Models for meal summaries emitted by the assistant."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FoodItem(BaseModel):
    """Single food line inside a meal summary."""

    name: str
    quantity: str
    calories: int


class MealSummary(BaseModel):
    """Structured meal payload carried by a summary tag.

    Field names follow the wire format (camelCase) while snake_case keys are
    accepted for payloads produced by older prompts. Values are kept exactly as
    decoded: totals are never re-derived from the items.
    """

    model_config = ConfigDict(frozen=True)

    meal_type: str = Field(
        serialization_alias="mealType",
        validation_alias=AliasChoices("mealType", "meal_type"),
    )
    total_calories: int = Field(
        serialization_alias="totalCalories",
        validation_alias=AliasChoices("totalCalories", "total_calories"),
    )
    protein: float
    carbs: float
    fats: float
    items: list[FoodItem]
    date: str | None = None
    health_score: int | None = Field(
        default=None,
        serialization_alias="healthScore",
        validation_alias=AliasChoices("healthScore", "health_score"),
    )

    def to_wire(self) -> dict[str, object]:
        """Return the summary using wire field names."""
        return self.model_dump(by_alias=True, exclude_none=True)
