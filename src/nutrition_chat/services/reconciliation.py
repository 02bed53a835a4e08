"""Meal reconciliation: decide which ledger entry a new summary targets.

A decoded summary either updates an existing entry or creates a new one. The
lookup order is:

1. an entry of the same meal type on the summary's date (one entry per
   date and meal type);
2. the entry produced by the active meal context message, when that message
   carries the same meal type;
3. the entry produced by the latest assistant summary message, same rule;
4. otherwise a new entry.

Rules 2 and 3 only look inside the summary's own daily log, so an entry logged
for another day is never touched by a later summary. A summary whose meal type
differs from the active context never renames the active entry.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID

from nutrition_chat.domain.ledger import DailyLog, MealEntry
from nutrition_chat.domain.messages import Message, last_summary_message
from nutrition_chat.domain.summaries import MealSummary
from nutrition_chat.services.ledger import LedgerService

_logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


class ResolutionRule(StrEnum):
    """Which lookup produced the write target."""

    SAME_TYPE = "same_type"
    ACTIVE_CONTEXT = "active_context"
    LAST_SUMMARY = "last_summary"
    NEW_ENTRY = "new_entry"


@dataclass(frozen=True)
class Resolution:
    """Target of a meal write."""

    log: DailyLog
    rule: ResolutionRule
    target: MealEntry | None = None


@dataclass(frozen=True)
class ReconcileResult:
    """Resolution plus the entry that was written."""

    resolution: Resolution
    entry: MealEntry


def resolve_target_date(raw: str | None, today: date) -> date:
    """Parse a ``YYYY-MM-DD`` summary date, falling back to ``today``."""
    if not raw:
        return today
    try:
        return datetime.strptime(raw.strip(), DATE_FORMAT).date()
    except ValueError:
        _logger.warning("Unparseable summary date %r; using %s", raw, today)
        return today


@dataclass
class MealReconciler:
    """Resolves summaries against the ledger and applies the write."""

    ledger: LedgerService

    def resolve(
        self,
        summary: MealSummary,
        messages: list[Message],
        active_message_id: UUID | None,
        today: date | None = None,
    ) -> Resolution:
        """Pick the entry to update, or decide to create a new one."""
        day = resolve_target_date(summary.date, today or self.ledger.today())
        log = self.ledger.ensure_daily_log(day)

        existing = log.find_meal_by_type(summary.meal_type)
        if existing is not None:
            return Resolution(log=log, rule=ResolutionRule.SAME_TYPE, target=existing)

        if active_message_id is not None:
            active = _find_message(messages, active_message_id)
            entry = _locate_same_type(log, active, summary)
            if entry is not None:
                return Resolution(
                    log=log, rule=ResolutionRule.ACTIVE_CONTEXT, target=entry
                )

        entry = _locate_same_type(log, last_summary_message(messages), summary)
        if entry is not None:
            return Resolution(log=log, rule=ResolutionRule.LAST_SUMMARY, target=entry)

        return Resolution(log=log, rule=ResolutionRule.NEW_ENTRY)

    def reconcile(  # noqa: PLR0913
        self,
        summary: MealSummary,
        messages: list[Message],
        active_message_id: UUID | None,
        message_id: UUID,
        today: date | None = None,
    ) -> ReconcileResult:
        """Resolve the summary and write it to the ledger.

        ``message_id`` is the assistant message carrying the summary; the
        written entry is linked to it.
        """
        resolution = self.resolve(summary, messages, active_message_id, today)
        _logger.info(
            "Resolved %s summary for %s via %s",
            summary.meal_type,
            resolution.log.date.isoformat(),
            resolution.rule.value,
        )
        entry = self.ledger.write_meal(
            resolution.log, summary, message_id, target=resolution.target
        )
        return ReconcileResult(resolution=resolution, entry=entry)


def _locate_same_type(
    log: DailyLog, message: Message | None, summary: MealSummary
) -> MealEntry | None:
    if message is None or message.summary is None:
        return None
    if message.summary.meal_type.casefold() != summary.meal_type.casefold():
        return None
    return log.find_meal_by_message(message.id)


def _find_message(messages: list[Message], message_id: UUID) -> Message | None:
    for message in messages:
        if message.id == message_id:
            return message
    return None
