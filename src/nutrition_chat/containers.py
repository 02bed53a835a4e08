"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_chat.adapters.openai_completion_client import OpenAICompletionClient
from nutrition_chat.adapters.supabase_ledger_repository import (
    SupabaseLedgerRepository,
)
from nutrition_chat.adapters.supabase_message_repository import (
    SupabaseMessageRepository,
)
from nutrition_chat.adapters.supabase_streak_repository import (
    SupabaseStreakRepository,
)
from nutrition_chat.config import Settings
from nutrition_chat.services.chat import ChatService
from nutrition_chat.services.completion import CompletionService
from nutrition_chat.services.context import ContextBuilder
from nutrition_chat.services.ledger import LedgerService
from nutrition_chat.services.reconciliation import MealReconciler
from nutrition_chat.services.streaks import StreakService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ledger_service: LedgerService
    chat_service: ChatService
    streak_service: StreakService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    ledger_repository = SupabaseLedgerRepository(supabase_client)
    message_repository = SupabaseMessageRepository(supabase_client)
    streak_repository = SupabaseStreakRepository(supabase_client)
    completion_client = OpenAICompletionClient.create(resolved_settings.openai_api_key)
    completion_service = CompletionService(
        client=completion_client,
        model=resolved_settings.openai_model,
        temperature=resolved_settings.openai_temperature,
        retry_attempts=resolved_settings.completion_retry_attempts,
        retry_delay_seconds=resolved_settings.completion_retry_delay_seconds,
    )
    ledger_service = LedgerService(
        ledger_repository,
        timezone_name=resolved_settings.timezone,
        rollback_on_save_failure=resolved_settings.ledger_rollback_on_save_failure,
    )
    streak_service = StreakService(streak_repository)
    chat_service = ChatService(
        completion_service=completion_service,
        context_builder=ContextBuilder(resolved_settings.context_window_size),
        reconciler=MealReconciler(ledger_service),
        streak_service=streak_service,
        message_repository=message_repository,
        profile=resolved_settings.user_profile(),
    )

    async def close_resources() -> None:
        await completion_client.close()

    return AppContainer(
        settings=resolved_settings,
        ledger_service=ledger_service,
        chat_service=chat_service,
        streak_service=streak_service,
        close_resources=close_resources,
    )
