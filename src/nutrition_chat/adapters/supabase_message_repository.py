"""Supabase repository for chat messages."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_chat.domain.messages import Message
from nutrition_chat.domain.summaries import MealSummary
from nutrition_chat.services.chat import MessageRepository


@dataclass
class SupabaseMessageRepository(MessageRepository):
    """Supabase implementation for chat messages."""

    client: Client

    def list_messages(self, since: datetime) -> list[Message]:
        """Return messages created since a timestamp, oldest first."""
        response = (
            self.client.table("messages")
            .select("id, content, is_user, created_at, summary_data")
            .gte("created_at", since.isoformat())
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_message(row) for row in response.data or []]

    def add_message(self, message: Message) -> None:
        """Insert a message row."""
        self.client.table("messages").insert(
            {
                "id": str(message.id),
                "content": message.content,
                "is_user": message.is_user,
                "created_at": message.timestamp.isoformat(),
                "summary_data": message.summary.to_wire() if message.summary else None,
            }
        ).execute()


def _parse_message(row: dict[str, object]) -> Message:
    summary_data = row.get("summary_data")
    return Message(
        id=UUID(row["id"]),
        content=str(row.get("content", "")),
        is_user=bool(row.get("is_user")),
        timestamp=datetime.fromisoformat(str(row["created_at"])),
        summary=MealSummary.model_validate(summary_data) if summary_data else None,
    )
