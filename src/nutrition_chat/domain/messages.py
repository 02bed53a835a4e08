"""Conversation message models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from nutrition_chat.domain.summaries import MealSummary


@dataclass(frozen=True)
class Message:
    """A single chat message, optionally carrying a decoded meal summary."""

    content: str
    is_user: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    summary: MealSummary | None = None
    id: UUID = field(default_factory=uuid4)


def last_summary_message(messages: list[Message]) -> Message | None:
    """Return the most recent assistant message that carries a summary."""
    for message in reversed(messages):
        if not message.is_user and message.summary is not None:
            return message
    return None
