"""Conversation context assembled for each completion request."""

from dataclasses import dataclass
from datetime import date

from nutrition_chat.domain.ledger import DailyLog
from nutrition_chat.domain.messages import Message, last_summary_message
from nutrition_chat.domain.profile import UserProfile
from nutrition_chat.domain.summaries import MealSummary

DEFAULT_WINDOW_SIZE = 10
SUGGESTIONS_REMINDER = (
    "(Internal Note: You MUST start your response with the <SUGGESTIONS> tag. "
    "This is mandatory.)"
)


@dataclass(frozen=True)
class DailyProgress:
    """Calories eaten today against the goal."""

    current_calories: int
    daily_goal: int

    @property
    def remaining_calories(self) -> int:
        """Calories left before the goal; negative once the goal is exceeded."""
        return self.daily_goal - self.current_calories

    def describe(self) -> str:
        """Render the progress line shown to the model."""
        return (
            f"Today: {self.current_calories} / {self.daily_goal} kcals. "
            f"Remaining: {self.remaining_calories}."
        )


@dataclass(frozen=True)
class ConversationContext:
    """Everything the completion provider needs for one request."""

    messages: list[Message]
    profile: UserProfile
    progress: DailyProgress
    today: date
    edit_baseline: MealSummary | None = None

    def chat_messages(self) -> list[dict[str, str]]:
        """Return the window as role/content pairs.

        A trailing user message gets the suggestions reminder appended.
        """
        last_index = len(self.messages) - 1
        payload: list[dict[str, str]] = []
        for index, message in enumerate(self.messages):
            content = message.content
            if message.is_user and index == last_index:
                content = f"{content}\n\n{SUGGESTIONS_REMINDER}"
            payload.append(
                {"role": "user" if message.is_user else "assistant", "content": content}
            )
        return payload


@dataclass
class ContextBuilder:
    """Builds the bounded context window and progress metrics."""

    window_size: int = DEFAULT_WINDOW_SIZE

    def build(
        self,
        messages: list[Message],
        profile: UserProfile,
        daily_log: DailyLog | None,
        today: date,
    ) -> ConversationContext:
        """Keep the newest messages and attach progress and edit baseline."""
        window = messages[-self.window_size :] if self.window_size > 0 else []
        current = daily_log.total_calories if daily_log is not None else 0
        baseline_message = last_summary_message(messages)
        return ConversationContext(
            messages=list(window),
            profile=profile,
            progress=DailyProgress(
                current_calories=current, daily_goal=profile.daily_goal
            ),
            today=today,
            edit_baseline=baseline_message.summary if baseline_message else None,
        )


def describe_edit_baseline(summary: MealSummary) -> str:
    """Render the previous meal so follow-up edits keep unmentioned items."""
    items = ", ".join(f"{item.name}: {item.calories} kcal" for item in summary.items)
    return (
        f"Previous meal ({summary.meal_type}): {summary.total_calories} kcal "
        f"(P: {summary.protein}g, C: {summary.carbs}g, F: {summary.fats}g). "
        f"Items: {items}"
    )


def greeting_for(hour: int, name: str = "") -> str:
    """Return the opening message for an empty conversation."""
    prefix = f"Hello {name}! " if name else ""
    if 5 <= hour < 11:  # noqa: PLR2004
        return f"{prefix}Good morning! What did you have for breakfast?"
    if 11 <= hour < 16:  # noqa: PLR2004
        return f"{prefix}Hi! What's for lunch today?"
    if 16 <= hour < 19:  # noqa: PLR2004
        return f"{prefix}Hey! Having an evening snack?"
    return f"{prefix}Good evening! What did you have for dinner?"
