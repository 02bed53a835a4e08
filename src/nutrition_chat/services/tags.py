"""Extraction of structured tags from raw assistant text."""

import logging
import re
from dataclasses import dataclass, field

from nutrition_chat.services.summaries import decode_suggestions

_logger = logging.getLogger(__name__)

WATER_LOG_PATTERN = re.compile(r"<WATER_LOG>(\d+)</WATER_LOG>")
SUGGESTIONS_PATTERN = re.compile(r"<SUGGESTIONS>(.*?)</SUGGESTIONS>", re.DOTALL)
# Canonical tag first, then the alias the model sometimes drifts to.
SUMMARY_PATTERNS = (
    re.compile(r"<SUMMARY>(.*?)</SUMMARY>", re.DOTALL),
    re.compile(r"<TOTAL SUMMARY>(.*?)</TOTAL SUMMARY>", re.DOTALL),
)


@dataclass(frozen=True)
class ExtractedTags:
    """Tag payloads pulled out of a response plus the remaining prose."""

    cleaned_text: str
    water_amount_ml: int | None = None
    suggestions: list[str] = field(default_factory=list)
    suggestions_raw: str | None = None
    summary_raw: str | None = None


def extract_tags(raw: str) -> ExtractedTags:
    """Split raw assistant text into cleaned prose and tag payloads."""
    text = raw

    water_amount: int | None = None
    match = WATER_LOG_PATTERN.search(text)
    if match:
        water_amount = int(match.group(1))
        text = _remove_span(text, match)

    suggestions: list[str] = []
    suggestions_raw: str | None = None
    match = SUGGESTIONS_PATTERN.search(text)
    if match:
        suggestions_raw = match.group(1).strip()
        suggestions = decode_suggestions(suggestions_raw).value_or([])
        text = _remove_span(text, match)
    else:
        _logger.debug("No suggestions tag in response")

    summary_raw: str | None = None
    for pattern in SUMMARY_PATTERNS:
        match = pattern.search(text)
        if match:
            summary_raw = match.group(1).strip()
            text = _remove_span(text, match)
            break

    return ExtractedTags(
        cleaned_text=text.strip(),
        water_amount_ml=water_amount,
        suggestions=suggestions,
        suggestions_raw=suggestions_raw,
        summary_raw=summary_raw,
    )


def _remove_span(text: str, match: re.Match[str]) -> str:
    return text[: match.start()] + text[match.end() :]
