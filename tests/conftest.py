"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

import pytest

from nutrition_chat.config import Settings
from nutrition_chat.containers import AppContainer
from nutrition_chat.domain.ledger import DailyLog, MealEntry, SavedFoodItem
from nutrition_chat.domain.messages import Message
from nutrition_chat.domain.streaks import WaterStreak
from nutrition_chat.services.chat import ChatService, MessageRepository
from nutrition_chat.services.completion import CompletionClient, CompletionService
from nutrition_chat.services.context import ContextBuilder
from nutrition_chat.services.ledger import LedgerRepository, LedgerService
from nutrition_chat.services.reconciliation import MealReconciler
from nutrition_chat.services.streaks import StreakRepository, StreakService


@dataclass
class InMemoryLedgerRepository(LedgerRepository):
    """In-memory ledger store for tests."""

    logs: dict[date, DailyLog] = field(default_factory=dict)
    deleted: list[MealEntry | SavedFoodItem] = field(default_factory=list)
    fail_saves: bool = False
    save_count: int = 0
    saved: list[list[date]] = field(default_factory=list)
    rollback_count: int = 0
    _unsaved: list[date] = field(default_factory=list)

    def find_daily_log(self, day: date) -> DailyLog | None:
        return self.logs.get(day)

    def find_daily_log_by_entry(self, entry_id: UUID) -> DailyLog | None:
        for log in self.logs.values():
            if log.find_meal(entry_id) is not None:
                return log
        return None

    def insert(self, log: DailyLog) -> None:
        self.logs[log.date] = log
        self._unsaved.append(log.date)

    def delete(self, record: MealEntry | SavedFoodItem) -> None:
        self.deleted.append(record)

    def save(self, logs: list[DailyLog]) -> None:
        if self.fail_saves:
            raise RuntimeError("database unavailable")
        self.save_count += 1
        self.saved.append([log.date for log in logs])
        self._unsaved.clear()

    def rollback(self) -> None:
        self.rollback_count += 1
        for day in self._unsaved:
            self.logs.pop(day, None)
        self._unsaved.clear()


@dataclass
class InMemoryMessageRepository(MessageRepository):
    """In-memory message store for tests."""

    messages: list[Message] = field(default_factory=list)
    fail_writes: bool = False

    def list_messages(self, since: datetime) -> list[Message]:
        return [message for message in self.messages if message.timestamp >= since]

    def add_message(self, message: Message) -> None:
        if self.fail_writes:
            raise RuntimeError("database unavailable")
        self.messages.append(message)


@dataclass
class InMemoryStreakRepository(StreakRepository):
    """In-memory streak store for tests."""

    streak: WaterStreak = field(default_factory=WaterStreak)

    def get_streak(self) -> WaterStreak:
        return self.streak

    def save_streak(self, streak: WaterStreak) -> None:
        self.streak = streak


@dataclass
class FakeCompletionClient(CompletionClient):
    """Fake completion client replaying queued replies or errors."""

    replies: list[str | Exception] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)
    closed: bool = False

    def queue(self, *replies: str | Exception) -> None:
        self.replies.extend(replies)

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float | None,
    ) -> str:
        self.calls.append(
            {"model": model, "messages": messages, "temperature": temperature}
        )
        reply = self.replies.pop(0) if self.replies else "Okay."
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        openai_api_key="openai-key",
        api_token="api-token",
        completion_retry_delay_seconds=0,
    )


@pytest.fixture
def ledger_repository() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository()


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def ledger_service(ledger_repository: InMemoryLedgerRepository) -> LedgerService:
    return LedgerService(ledger_repository)


@pytest.fixture
def chat_service(
    settings: Settings,
    ledger_service: LedgerService,
    completion_client: FakeCompletionClient,
) -> ChatService:
    completion_service = CompletionService(
        client=completion_client,
        model=settings.openai_model,
        temperature=settings.openai_temperature,
        retry_attempts=settings.completion_retry_attempts,
        retry_delay_seconds=settings.completion_retry_delay_seconds,
    )
    return ChatService(
        completion_service=completion_service,
        context_builder=ContextBuilder(settings.context_window_size),
        reconciler=MealReconciler(ledger_service),
        streak_service=StreakService(InMemoryStreakRepository()),
        message_repository=InMemoryMessageRepository(),
        profile=settings.user_profile(),
    )


@pytest.fixture
def container(
    settings: Settings,
    ledger_service: LedgerService,
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
) -> AppContainer:
    async def close_resources() -> None:
        await completion_client.close()

    return AppContainer(
        settings=settings,
        ledger_service=ledger_service,
        chat_service=chat_service,
        streak_service=chat_service.streak_service,
        close_resources=close_resources,
    )
