"""Daily ledger aggregation with incremental totals."""

import copy
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from nutrition_chat.domain.ledger import DailyLog, MealEntry, SavedFoodItem
from nutrition_chat.domain.summaries import MealSummary
from nutrition_chat.errors import LedgerSaveError, MealNotFoundError

_logger = logging.getLogger(__name__)


class LedgerRepository(Protocol):
    """Unit-of-work style store for daily log aggregates."""

    def find_daily_log(self, day: date) -> DailyLog | None:
        """Return the log for a calendar day, if present."""

    def find_daily_log_by_entry(self, entry_id: UUID) -> DailyLog | None:
        """Return the log that owns a meal entry."""

    def insert(self, log: DailyLog) -> None:
        """Track a newly created daily log."""

    def delete(self, record: MealEntry | SavedFoodItem) -> None:
        """Schedule a meal entry or food item for removal."""

    def save(self, logs: list[DailyLog]) -> None:
        """Persist the given logs and all pending deletions."""

    def rollback(self) -> None:
        """Discard changes that were not saved."""


@dataclass(frozen=True)
class MacroTotals:
    """Calories and macros carried by an entry or summary."""

    calories: int
    protein: float
    carbs: float
    fats: float

    @classmethod
    def of_entry(cls, entry: MealEntry) -> "MacroTotals":
        """Capture the current totals of a meal entry."""
        return cls(entry.total_calories, entry.protein, entry.carbs, entry.fats)

    @classmethod
    def of_summary(cls, summary: MealSummary) -> "MacroTotals":
        """Capture the totals declared by a meal summary."""
        return cls(summary.total_calories, summary.protein, summary.carbs, summary.fats)


@dataclass
class LedgerService:
    """Owns per-day totals and applies meal and water deltas."""

    repository: LedgerRepository
    timezone_name: str = "UTC"
    rollback_on_save_failure: bool = False

    def today(self) -> date:
        """Return the current calendar day in the configured timezone."""
        return datetime.now(tz=ZoneInfo(self.timezone_name)).date()

    def get_daily_log(self, day: date) -> DailyLog | None:
        """Return the log for a day without creating it."""
        return self.repository.find_daily_log(day)

    def ensure_daily_log(self, day: date) -> DailyLog:
        """Return the log for a day, creating it lazily."""
        existing = self.repository.find_daily_log(day)
        if existing is not None:
            return existing
        _logger.info("Creating daily log for %s", day.isoformat())
        log = DailyLog(date=day)
        self.repository.insert(log)
        return log

    def apply_meal_delta(
        self,
        log: DailyLog,
        subtract: MacroTotals | None,
        add: MealSummary | None,
    ) -> None:
        """Adjust log totals by removing one snapshot and adding a summary."""
        if subtract is not None:
            log.total_calories -= subtract.calories
            log.protein -= subtract.protein
            log.carbs -= subtract.carbs
            log.fats -= subtract.fats
        if add is not None:
            log.total_calories += add.total_calories
            log.protein += add.protein
            log.carbs += add.carbs
            log.fats += add.fats

    def write_meal(
        self,
        log: DailyLog,
        summary: MealSummary,
        message_id: UUID | None,
        target: MealEntry | None = None,
    ) -> MealEntry:
        """Create a meal entry in ``log`` or overwrite ``target`` with the summary."""
        with self._mutation(log):
            if target is None:
                entry = MealEntry(
                    meal_type=summary.meal_type,
                    total_calories=summary.total_calories,
                    protein=summary.protein,
                    carbs=summary.carbs,
                    fats=summary.fats,
                    associated_message_id=message_id,
                )
                log.meals.append(entry)
                _logger.info(
                    "Created %s entry on %s", summary.meal_type, log.date.isoformat()
                )
            else:
                self.apply_meal_delta(log, MacroTotals.of_entry(target), None)
                for item in target.food_items:
                    self.repository.delete(item)
                target.food_items = []
                target.meal_type = summary.meal_type
                target.total_calories = summary.total_calories
                target.protein = summary.protein
                target.carbs = summary.carbs
                target.fats = summary.fats
                target.associated_message_id = message_id
                entry = target
                _logger.info(
                    "Updated %s entry on %s", summary.meal_type, log.date.isoformat()
                )
            entry.food_items = [
                SavedFoodItem(
                    name=item.name, quantity=item.quantity, calories=item.calories
                )
                for item in summary.items
            ]
            self.apply_meal_delta(log, None, summary)
        _logger.info(
            "Daily total for %s: %s kcal", log.date.isoformat(), log.total_calories
        )
        return entry

    def add_water(self, day: date, amount_ml: int) -> DailyLog:
        """Add water intake to a day; totals above the goal are kept as-is."""
        log = self.ensure_daily_log(day)
        with self._mutation(log):
            log.water_intake_ml += amount_ml
        _logger.info(
            "Logged %sml water on %s (total %sml)",
            amount_ml,
            day.isoformat(),
            log.water_intake_ml,
        )
        return log

    def delete_meal(self, entry_id: UUID) -> DailyLog:
        """Remove a meal entry and its food items from its log."""
        log = self.repository.find_daily_log_by_entry(entry_id)
        entry = log.find_meal(entry_id) if log is not None else None
        if log is None or entry is None:
            raise MealNotFoundError(f"Meal entry {entry_id} not found")
        with self._mutation(log):
            self.apply_meal_delta(log, MacroTotals.of_entry(entry), None)
            for item in entry.food_items:
                self.repository.delete(item)
            entry.food_items = []
            log.meals.remove(entry)
            self.repository.delete(entry)
        _logger.info("Deleted %s entry on %s", entry.meal_type, log.date.isoformat())
        return log

    @contextmanager
    def _mutation(self, log: DailyLog) -> Iterator[None]:
        snapshot = copy.deepcopy(log) if self.rollback_on_save_failure else None
        yield
        try:
            self.repository.save([log])
        except Exception as exc:
            _logger.exception("Failed to save ledger changes")
            if snapshot is None:
                return
            log.restore(snapshot)
            self.repository.rollback()
            raise LedgerSaveError("Ledger changes were rolled back") from exc
