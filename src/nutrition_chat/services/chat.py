"""Chat turn orchestration: completion, tag handling and ledger writes."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from nutrition_chat.domain.ledger import DailyLog
from nutrition_chat.domain.messages import Message, last_summary_message
from nutrition_chat.domain.profile import UserProfile
from nutrition_chat.domain.summaries import MealSummary
from nutrition_chat.errors import CompletionError, LedgerSaveError
from nutrition_chat.services.completion import CompletionService
from nutrition_chat.services.context import ContextBuilder, greeting_for
from nutrition_chat.services.ledger import LedgerService
from nutrition_chat.services.reconciliation import MealReconciler, ReconcileResult
from nutrition_chat.services.streaks import StreakService, StreakUpdate
from nutrition_chat.services.suggestions import fallback_suggestions
from nutrition_chat.services.summaries import decode_meal_summary
from nutrition_chat.services.tags import extract_tags

_logger = logging.getLogger(__name__)

APOLOGY_TEXT = "Sorry, I'm having trouble connecting right now. Please try again."


class MessageRepository(Protocol):
    """Persistence interface for chat messages."""

    def list_messages(self, since: datetime) -> list[Message]:
        """Return messages created at or after ``since``, oldest first."""

    def add_message(self, message: Message) -> None:
        """Persist a message."""


@dataclass(frozen=True)
class ChatTurn:
    """Outcome of one user message."""

    reply: Message
    suggestions: list[str]
    daily_log: DailyLog | None = None
    meal: ReconcileResult | None = None
    water_logged_ml: int | None = None
    streak: StreakUpdate | None = None
    failed: bool = False


@dataclass
class ChatService:
    """Single-writer pipeline from user text to ledger updates.

    One lock serializes whole turns, including the completion await, so two
    reconciliations never race on the same daily log.
    """

    completion_service: CompletionService
    context_builder: ContextBuilder
    reconciler: MealReconciler
    streak_service: StreakService
    message_repository: MessageRepository
    profile: UserProfile
    messages: list[Message] = field(default_factory=list)
    active_meal_message_id: UUID | None = None
    loaded_day: date | None = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def ledger(self) -> LedgerService:
        """Return the ledger the reconciler writes to."""
        return self.reconciler.ledger

    def load(self, now: datetime | None = None) -> list[Message]:
        """Restore today's conversation and the active meal context."""
        current = now or self._now()
        self.loaded_day = current.date()
        start_of_day = current.replace(hour=0, minute=0, second=0, microsecond=0)
        self.messages = self.message_repository.list_messages(since=start_of_day)
        if not self.messages:
            greeting = greeting_for(current.hour, self.profile.name)
            self._add(Message(content=greeting, is_user=False))
        latest = last_summary_message(self.messages)
        self.active_meal_message_id = latest.id if latest else None
        return self.messages

    def refresh(self, now: datetime | None = None) -> list[Message]:
        """Reload the conversation once the calendar day has rolled over."""
        current = now or self._now()
        if self.loaded_day is not None and current.date() != self.loaded_day:
            _logger.info("Day changed to %s; reloading conversation", current.date())
            return self.load(current)
        return self.messages

    async def send_message(self, text: str) -> ChatTurn:
        """Run one turn: ask the model, then apply its tags to the ledger."""
        content = text.strip()
        if not content:
            raise ValueError("Message text is empty")
        async with self._lock:
            self.refresh()
            self._add(Message(content=content, is_user=True))
            today = self.ledger.today()
            context = self.context_builder.build(
                self.messages, self.profile, self.ledger.get_daily_log(today), today
            )
            try:
                raw = await self.completion_service.get_completion(context)
            except CompletionError:
                _logger.exception("Completion failed; replying with apology")
                reply = Message(content=APOLOGY_TEXT, is_user=False)
                self._add(reply)
                return ChatTurn(
                    reply=reply,
                    suggestions=[],
                    daily_log=self.ledger.get_daily_log(today),
                    failed=True,
                )
            return self._apply_response(raw, today)

    async def log_water(self, amount_ml: int) -> tuple[DailyLog, StreakUpdate]:
        """Log water for today outside of a chat turn."""
        async with self._lock:
            today = self.ledger.today()
            log = self.ledger.add_water(today, amount_ml)
            return log, self._check_streak(log, today)

    async def delete_meal(self, entry_id: UUID) -> DailyLog:
        """Delete a meal entry from its daily log."""
        async with self._lock:
            return self.ledger.delete_meal(entry_id)

    def _apply_response(self, raw: str, today: date) -> ChatTurn:
        tags = extract_tags(raw)
        suggestions = tags.suggestions
        if not suggestions:
            _logger.info("No suggestions from model; using fallback chips")
            suggestions = fallback_suggestions(tags.cleaned_text)

        water_logged: int | None = None
        streak: StreakUpdate | None = None
        if tags.water_amount_ml is not None:
            try:
                log = self.ledger.add_water(today, tags.water_amount_ml)
            except LedgerSaveError:
                _logger.warning(
                    "Water log of %sml was rolled back", tags.water_amount_ml
                )
            else:
                water_logged = tags.water_amount_ml
                streak = self._check_streak(log, today)

        summary: MealSummary | None = None
        if tags.summary_raw is not None:
            summary = decode_meal_summary(tags.summary_raw).value

        reply_id = uuid4()
        meal: ReconcileResult | None = None
        if summary is not None:
            try:
                meal = self.reconciler.reconcile(
                    summary,
                    self.messages,
                    self.active_meal_message_id,
                    message_id=reply_id,
                    today=today,
                )
            except LedgerSaveError:
                _logger.warning("Meal write was rolled back; summary dropped")
                summary = None

        reply = Message(
            content=tags.cleaned_text, is_user=False, summary=summary, id=reply_id
        )
        self._add(reply)
        if meal is not None:
            self.active_meal_message_id = reply.id

        return ChatTurn(
            reply=reply,
            suggestions=suggestions,
            daily_log=meal.resolution.log if meal else self.ledger.get_daily_log(today),
            meal=meal,
            water_logged_ml=water_logged,
            streak=streak,
        )

    def _now(self) -> datetime:
        return datetime.now(tz=ZoneInfo(self.ledger.timezone_name))

    def _check_streak(self, log: DailyLog, today: date) -> StreakUpdate:
        return self.streak_service.check_goal_reached(
            log.water_intake_ml, self.profile.daily_water_goal_ml, today
        )

    def _add(self, message: Message) -> None:
        self.messages.append(message)
        try:
            self.message_repository.add_message(message)
        except Exception:
            _logger.exception("Failed to persist message %s", message.id)
