"""Decoders for JSON payloads embedded in assistant tags."""

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from nutrition_chat.domain.summaries import MealSummary

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_SUGGESTIONS_ADAPTER = TypeAdapter(list[str])


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of decoding a tag payload: either a value or an error message."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Return True when decoding produced a value."""
        return self.error is None and self.value is not None

    def value_or(self, default: T) -> T:
        """Return the decoded value or the given fallback."""
        if self.value is None:
            return default
        return self.value


def decode_meal_summary(raw: str) -> DecodeResult[MealSummary]:
    """Decode summary JSON without repairing or re-deriving any values."""
    payload = raw.strip()
    try:
        summary = MealSummary.model_validate_json(payload)
    except ValidationError as exc:
        _logger.warning("Summary decode failed: %s; payload=%r", exc, payload)
        return DecodeResult(error=str(exc))
    return DecodeResult(value=summary)


def decode_suggestions(raw: str) -> DecodeResult[list[str]]:
    """Decode a JSON array of suggestion chips."""
    payload = raw.strip()
    try:
        chips = _SUGGESTIONS_ADAPTER.validate_json(payload)
    except ValidationError as exc:
        _logger.warning("Suggestions decode failed: %s; payload=%r", exc, payload)
        return DecodeResult(error=str(exc))
    return DecodeResult(value=chips)
