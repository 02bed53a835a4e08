"""Tests for chat turn orchestration."""

import asyncio
import json
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from nutrition_chat.domain.messages import Message
from nutrition_chat.domain.summaries import MealSummary
from nutrition_chat.services.chat import APOLOGY_TEXT, ChatService
from nutrition_chat.services.ledger import LedgerService
from nutrition_chat.services.reconciliation import ResolutionRule
from nutrition_chat.services.suggestions import DEFAULT_CHIPS, GREETING_CHIPS
from tests.conftest import (
    FakeCompletionClient,
    InMemoryLedgerRepository,
    InMemoryMessageRepository,
)


def _reply(meal_type: str, calories: int, text: str = "Logged it!") -> str:
    summary = {
        "mealType": meal_type,
        "totalCalories": calories,
        "protein": 12.0,
        "carbs": 30.0,
        "fats": 8.0,
        "items": [{"name": "Poha", "quantity": "1 plate", "calories": calories}],
        "healthScore": 7,
    }
    return (
        '<SUGGESTIONS>["Add Water", "View History"]</SUGGESTIONS>'
        f"{text}<SUMMARY>{json.dumps(summary)}</SUMMARY>"
    )


def test_turn_logs_meal_and_tracks_active_context(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
    ledger_service: LedgerService,
) -> None:
    completion_client.queue(_reply("Breakfast", 350))

    turn = asyncio.run(chat_service.send_message("I had poha"))

    assert not turn.failed
    assert turn.reply.content == "Logged it!"
    assert turn.suggestions == ["Add Water", "View History"]
    assert turn.meal is not None
    assert turn.meal.resolution.rule is ResolutionRule.NEW_ENTRY
    assert turn.meal.entry.associated_message_id == turn.reply.id
    assert turn.reply.summary is not None
    assert chat_service.active_meal_message_id == turn.reply.id
    log = ledger_service.get_daily_log(ledger_service.today())
    assert log is not None
    assert log.total_calories == 350
    assert turn.daily_log is log
    sent = completion_client.calls[0]["messages"]
    assert sent[-1]["role"] == "user"
    assert sent[-1]["content"].startswith("I had poha")


def test_follow_up_edit_updates_same_entry(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
    ledger_service: LedgerService,
) -> None:
    completion_client.queue(_reply("Breakfast", 350), _reply("Breakfast", 500))

    first = asyncio.run(chat_service.send_message("I had poha"))
    second = asyncio.run(chat_service.send_message("Actually two plates"))

    assert first.meal is not None
    assert second.meal is not None
    assert second.meal.entry is first.meal.entry
    log = ledger_service.get_daily_log(ledger_service.today())
    assert log is not None
    assert len(log.meals) == 1
    assert log.total_calories == 500
    assert chat_service.active_meal_message_id == second.reply.id
    system_prompt = completion_client.calls[1]["messages"][0]["content"]
    assert "Previous meal (Breakfast): 350 kcal" in system_prompt


def test_completion_failure_replies_with_apology(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
    ledger_repository: InMemoryLedgerRepository,
) -> None:
    completion_client.queue(*[RuntimeError("offline")] * 3)

    turn = asyncio.run(chat_service.send_message("I had poha"))

    assert turn.failed
    assert turn.reply.content == APOLOGY_TEXT
    assert turn.suggestions == []
    assert turn.meal is None
    assert ledger_repository.logs == {}
    assert chat_service.messages[-1] is turn.reply


def test_water_tag_logs_water_and_checks_streak(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
    ledger_service: LedgerService,
) -> None:
    completion_client.queue("<WATER_LOG>2500</WATER_LOG>Great job staying hydrated")

    turn = asyncio.run(chat_service.send_message("Drank 2.5 litres"))

    assert turn.water_logged_ml == 2500
    assert turn.streak is not None
    assert turn.streak.counted
    assert turn.meal is None
    assert turn.suggestions == DEFAULT_CHIPS
    log = ledger_service.get_daily_log(ledger_service.today())
    assert log is not None
    assert log.water_intake_ml == 2500
    assert log.meals == []


def test_malformed_summary_logs_nothing(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
    ledger_repository: InMemoryLedgerRepository,
) -> None:
    completion_client.queue("Welcome back! <SUMMARY>{bad json}</SUMMARY>")

    turn = asyncio.run(chat_service.send_message("hello"))

    assert turn.meal is None
    assert turn.reply.summary is None
    assert turn.reply.content == "Welcome back!"
    assert turn.suggestions == GREETING_CHIPS
    assert ledger_repository.logs == {}
    assert chat_service.active_meal_message_id is None


def test_rolled_back_meal_write_drops_summary(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
    ledger_service: LedgerService,
    ledger_repository: InMemoryLedgerRepository,
) -> None:
    ledger_service.rollback_on_save_failure = True
    ledger_repository.fail_saves = True
    completion_client.queue(_reply("Lunch", 600))

    turn = asyncio.run(chat_service.send_message("Lunch was rice"))

    assert turn.meal is None
    assert turn.reply.summary is None
    assert turn.daily_log is None
    assert ledger_repository.logs == {}
    assert chat_service.active_meal_message_id is None


def test_message_persistence_failure_does_not_break_turn(
    chat_service: ChatService, completion_client: FakeCompletionClient
) -> None:
    repository = chat_service.message_repository
    assert isinstance(repository, InMemoryMessageRepository)
    repository.fail_writes = True
    completion_client.queue(_reply("Snack", 120))

    turn = asyncio.run(chat_service.send_message("An apple"))

    assert turn.meal is not None
    assert len(chat_service.messages) == 2


def test_empty_message_is_rejected(chat_service: ChatService) -> None:
    with pytest.raises(ValueError):
        asyncio.run(chat_service.send_message("   "))


def test_load_greets_empty_conversation(chat_service: ChatService) -> None:
    now = datetime(2025, 1, 1, 8, 0, tzinfo=UTC)

    messages = chat_service.load(now=now)

    assert len(messages) == 1
    assert not messages[0].is_user
    assert "breakfast" in messages[0].content
    assert chat_service.active_meal_message_id is None


def test_load_restores_active_context(chat_service: ChatService) -> None:
    repository = chat_service.message_repository
    assert isinstance(repository, InMemoryMessageRepository)
    now = datetime(2025, 1, 1, 13, 0, tzinfo=UTC)
    summary = MealSummary.model_validate(
        {
            "mealType": "Lunch",
            "totalCalories": 400,
            "protein": 10,
            "carbs": 50,
            "fats": 12,
            "items": [],
        }
    )
    reply = Message(
        content="Logged",
        is_user=False,
        summary=summary,
        timestamp=datetime(2025, 1, 1, 12, 30, tzinfo=UTC),
        id=uuid4(),
    )
    repository.messages = [
        Message(
            content="yesterday",
            is_user=True,
            timestamp=datetime(2024, 12, 31, 20, 0, tzinfo=UTC),
        ),
        Message(
            content="Rice and dal",
            is_user=True,
            timestamp=datetime(2025, 1, 1, 12, 29, tzinfo=UTC),
        ),
        reply,
    ]

    messages = chat_service.load(now=now)

    assert [message.content for message in messages] == ["Rice and dal", "Logged"]
    assert chat_service.active_meal_message_id == reply.id


def test_direct_water_log_and_meal_delete(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
    ledger_service: LedgerService,
) -> None:
    completion_client.queue(_reply("Dinner", 700))
    turn = asyncio.run(chat_service.send_message("Dinner was biryani"))
    assert turn.meal is not None

    log, update = asyncio.run(chat_service.log_water(300))
    after_delete = asyncio.run(chat_service.delete_meal(turn.meal.entry.id))

    assert log.water_intake_ml == 300
    assert not update.counted
    assert after_delete.total_calories == 0
    assert after_delete.meals == []
    assert ledger_service.get_daily_log(ledger_service.today()) is after_delete


def _lunch_reply_message(timestamp: datetime) -> Message:
    summary = MealSummary.model_validate(
        {
            "mealType": "Lunch",
            "totalCalories": 400,
            "protein": 10,
            "carbs": 50,
            "fats": 12,
            "items": [],
        }
    )
    return Message(
        content="Logged", is_user=False, summary=summary, timestamp=timestamp
    )


def test_refresh_keeps_conversation_within_the_same_day(
    chat_service: ChatService,
) -> None:
    repository = chat_service.message_repository
    assert isinstance(repository, InMemoryMessageRepository)
    repository.messages = [
        _lunch_reply_message(datetime(2025, 1, 1, 12, 30, tzinfo=UTC))
    ]
    loaded = chat_service.load(now=datetime(2025, 1, 1, 13, 0, tzinfo=UTC))

    refreshed = chat_service.refresh(now=datetime(2025, 1, 1, 23, 59, tzinfo=UTC))

    assert refreshed is loaded
    assert chat_service.active_meal_message_id == repository.messages[0].id


def test_refresh_reloads_conversation_after_midnight(
    chat_service: ChatService,
) -> None:
    repository = chat_service.message_repository
    assert isinstance(repository, InMemoryMessageRepository)
    repository.messages = [
        _lunch_reply_message(datetime(2025, 1, 1, 12, 30, tzinfo=UTC))
    ]
    chat_service.load(now=datetime(2025, 1, 1, 13, 0, tzinfo=UTC))

    messages = chat_service.refresh(now=datetime(2025, 1, 2, 8, 0, tzinfo=UTC))

    assert len(messages) == 1
    assert not messages[0].is_user
    assert "breakfast" in messages[0].content
    assert chat_service.active_meal_message_id is None
    assert chat_service.loaded_day == datetime(2025, 1, 2).date()


def test_first_turn_of_a_new_day_starts_fresh_conversation(
    chat_service: ChatService,
    completion_client: FakeCompletionClient,
) -> None:
    repository = chat_service.message_repository
    assert isinstance(repository, InMemoryMessageRepository)
    yesterday = _lunch_reply_message(datetime(2025, 1, 1, 12, 30, tzinfo=UTC))
    repository.messages = [yesterday]
    chat_service.load(now=datetime(2025, 1, 1, 20, 0, tzinfo=UTC))
    assert chat_service.active_meal_message_id == yesterday.id
    completion_client.queue('<SUGGESTIONS>["Add Water"]</SUGGESTIONS>Hello there')

    turn = asyncio.run(chat_service.send_message("Good morning"))

    assert yesterday not in chat_service.messages
    assert [message.is_user for message in chat_service.messages] == [
        False,
        True,
        False,
    ]
    assert chat_service.messages[-1] is turn.reply
    assert chat_service.active_meal_message_id is None
    sent = completion_client.calls[0]["messages"]
    assert all(item["content"] != "Logged" for item in sent)
