"""Completion requests with retries and model capabilities."""

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from nutrition_chat.errors import CompletionError
from nutrition_chat.services.context import ConversationContext, describe_edit_baseline

_logger = logging.getLogger(__name__)


class CompletionModel(StrEnum):
    """Chat models the assistant can run on."""

    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"
    O1_MINI = "o1-mini"
    O1 = "o1"

    @property
    def supports_temperature(self) -> bool:
        """Reasoning models reject a temperature parameter."""
        return self in {CompletionModel.GPT_4O, CompletionModel.GPT_4O_MINI}


class CompletionClient(Protocol):
    """Interface for chat completion providers."""

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float | None,
    ) -> str:
        """Return the raw assistant text for a conversation."""


@dataclass
class CompletionService:
    """Builds the request payload and retries transient provider failures."""

    client: CompletionClient
    model: str = CompletionModel.GPT_4O.value
    temperature: float = 0.6
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0

    async def get_completion(self, context: ConversationContext) -> str:
        """Return raw assistant text, raising ``CompletionError`` when exhausted."""
        messages = [
            {"role": "system", "content": build_system_prompt(context)},
            *context.chat_messages(),
        ]
        temperature = self.temperature if self.supports_temperature else None
        attempts = max(self.retry_attempts, 1)
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                return await self.client.complete(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                )
            except Exception as exc:
                last_error = exc
                _logger.warning(
                    "Completion failed (attempt %s/%s): %s", attempt, attempts, exc
                )
                if attempt < attempts:
                    await asyncio.sleep(attempt * self.retry_delay_seconds)
        raise CompletionError(
            f"Completion failed after {attempts} attempts"
        ) from last_error

    @property
    def supports_temperature(self) -> bool:
        """Return whether the configured model accepts a temperature."""
        try:
            return CompletionModel(self.model).supports_temperature
        except ValueError:
            return True


def build_system_prompt(context: ConversationContext) -> str:
    """Render profile, progress and the tag grammar for the model."""
    profile = context.profile
    lines = [
        "You are a nutrition logging assistant.",
        f"Today is {context.today.isoformat()}.",
        f"User: {profile.name or 'Not provided'}",
        f"Goal: {profile.goal_type} (Target: {profile.daily_goal} kcal)",
        f"Diet: {profile.diet_type} (Allergies: {profile.allergies})",
        f"Favorite cuisines: {profile.favorite_cuisines}",
        f"Status: {context.progress.describe()}",
        'Start every reply with <SUGGESTIONS>["chip", "chip", "chip"]'
        "</SUGGESTIONS>.",
        "Log water as <WATER_LOG>amount_ml</WATER_LOG>.",
        "Log meals as <SUMMARY>{json}</SUMMARY> with keys mealType, totalCalories, "
        "protein, carbs, fats, date (YYYY-MM-DD), items [{name, quantity, calories}] "
        "and healthScore (1-10). The JSON must be strictly valid.",
    ]
    if context.edit_baseline is not None:
        lines.append(describe_edit_baseline(context.edit_baseline))
    return "\n".join(lines)
